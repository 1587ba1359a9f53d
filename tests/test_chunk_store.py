import pytest

from mobile.accentlab.errors import StaleChunkIndex
from mobile.accentlab.models import Chunk
from mobile.accentlab.store.chunk_store import ChunkStore


def test_replace_all_swaps_sequence_and_bumps_generation(three_chunks):
    store = ChunkStore()
    assert store.generation == 0
    generation = store.replace_all(three_chunks)
    assert generation == 1
    assert list(store) == three_chunks
    assert store.joined_text() == "hi there x"

    store.replace_all(three_chunks[:1])
    assert len(store) == 1
    assert store.generation == 2


def test_replace_all_rejects_non_chunks_without_writing(three_chunks):
    store = ChunkStore()
    store.replace_all(three_chunks)
    before = store.snapshot()
    with pytest.raises(TypeError):
        store.replace_all([three_chunks[0], {"start": 0, "end": 1}])
    assert store.snapshot() is before
    assert store.generation == 1


def test_replace_at_touches_only_target_index(three_chunks):
    store = ChunkStore()
    generation = store.replace_all(three_chunks)
    updated = Chunk(start=1, end=2, text="there again", prediction={"british": 0.4, "us": 0.6})
    store.replace_at(1, updated, expected_generation=generation)
    assert store[0] == three_chunks[0]
    assert store[1] == updated
    assert store[2] == three_chunks[2]
    assert store.generation == generation + 1


def test_replace_at_with_stale_generation_leaves_store(three_chunks):
    store = ChunkStore()
    generation = store.replace_all(three_chunks)
    store.replace_all(three_chunks[::-1])
    before = store.snapshot()
    with pytest.raises(StaleChunkIndex):
        store.replace_at(0, three_chunks[1], expected_generation=generation)
    assert store.snapshot() == before


def test_replace_at_out_of_range(three_chunks):
    store = ChunkStore()
    generation = store.replace_all(three_chunks)
    with pytest.raises(StaleChunkIndex):
        store.replace_at(3, three_chunks[0], expected_generation=generation)
    assert store.generation == generation


def test_joined_text_skips_blank_chunks():
    store = ChunkStore()
    store.replace_all([Chunk(start=0, end=1, text="  "), Chunk(start=1, end=2, text=" hello ")])
    assert store.joined_text() == "hello"
    store.clear()
    assert store.joined_text() == ""
    assert len(store) == 0
