import logging

from mobile.accentlab.services.logger import LogBuffer


def test_log_buffer_keeps_latest_lines():
    buffer = LogBuffer(2)
    buffer.add("one")
    buffer.add("two")
    buffer.add("three")
    lines = buffer.get()
    assert len(lines) == 2
    assert lines[0].endswith("two")
    assert lines[1].endswith("three")
    buffer.clear()
    assert len(buffer) == 0


def test_log_buffer_mirrors_to_logging(caplog):
    buffer = LogBuffer(10, logger_name="accentlab.test")
    with caplog.at_level(logging.INFO, logger="accentlab.test"):
        buffer.add("Recording started")
        buffer.add("EmptyRecording: nothing captured", logging.WARNING)
    messages = [(record.levelno, record.getMessage()) for record in caplog.records]
    assert (logging.INFO, "Recording started") in messages
    assert (logging.WARNING, "EmptyRecording: nothing captured") in messages
