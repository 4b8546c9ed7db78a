"""Unit tests for the ContextChunker -- fixed-window chunking with overlap."""

from __future__ import annotations

import pytest

from contextkeeper.services.chunker import ContextChunker
from contextkeeper.utils.errors import ConfigurationError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_chunker(max_chunk_size: int = 4, overlap: int = 1) -> ContextChunker:
    """Build a ContextChunker with a predictable configuration."""
    return ContextChunker(max_chunk_size=max_chunk_size, overlap=overlap)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestWindowing:
    def test_empty_content_yields_no_chunks(self, make_context) -> None:
        assert _make_chunker().chunk(make_context(content="")) == []

    def test_short_content_yields_single_chunk(self, make_context) -> None:
        chunks = _make_chunker(max_chunk_size=100, overlap=10).chunk(make_context(content="hello"))

        assert len(chunks) == 1
        assert chunks[0].content == "hello"
        assert chunks[0].position == 0

    def test_windows_advance_by_size_minus_overlap(self, make_context) -> None:
        chunks = _make_chunker(max_chunk_size=4, overlap=1).chunk(make_context(content="abcdefghij"))

        assert [c.position for c in chunks] == [0, 3, 6]
        assert [c.content for c in chunks] == ["abcd", "defg", "ghij"]

    def test_stops_once_window_reaches_end(self, make_context) -> None:
        chunks = _make_chunker(max_chunk_size=4, overlap=0).chunk(make_context(content="abcdefgh"))

        assert [c.content for c in chunks] == ["abcd", "efgh"]

    def test_last_window_may_be_shorter(self, make_context) -> None:
        chunks = _make_chunker(max_chunk_size=4, overlap=2).chunk(make_context(content="abcdefg"))

        assert [c.content for c in chunks] == ["abcd", "cdef", "efg"]

    def test_consecutive_chunks_share_overlap(self, make_context) -> None:
        content = "The quick brown fox jumps over the lazy dog " * 10
        chunks = _make_chunker(max_chunk_size=50, overlap=10).chunk(make_context(content=content))

        for previous, current in zip(chunks, chunks[1:]):
            assert previous.content[-10:] == current.content[:10]

    def test_every_chunk_is_substring_at_its_position(self, make_context) -> None:
        content = "lorem ipsum dolor sit amet " * 20
        chunks = _make_chunker(max_chunk_size=37, overlap=5).chunk(make_context(content=content))

        for chunk in chunks:
            assert len(chunk.content) <= 37
            assert content[chunk.position : chunk.position + len(chunk.content)] == chunk.content
        assert chunks[-1].position + len(chunks[-1].content) == len(content)


class TestChunkIdentity:
    def test_chunks_carry_context_id_and_fresh_ids(self, make_context) -> None:
        chunks = _make_chunker().chunk(make_context(context_id="ctx-42", content="abcdefghij"))

        assert all(c.context_id == "ctx-42" for c in chunks)
        assert len({c.chunk_id for c in chunks}) == len(chunks)
        assert all(c.embedding is None for c in chunks)

    def test_rechunking_generates_new_ids(self, make_context) -> None:
        chunker = _make_chunker()
        context = make_context(content="abcdefghij")

        first = {c.chunk_id for c in chunker.chunk(context)}
        second = {c.chunk_id for c in chunker.chunk(context)}

        assert first.isdisjoint(second)


class TestUnicode:
    def test_multibyte_characters_are_never_split(self, make_context) -> None:
        content = "héllo wörld ünïcödé ✓✓✓ 日本語テキスト"
        chunks = _make_chunker(max_chunk_size=5, overlap=2).chunk(make_context(content=content))

        for chunk in chunks:
            assert content[chunk.position : chunk.position + len(chunk.content)] == chunk.content
            chunk.content.encode("utf-8")


class TestConfiguration:
    def test_defaults(self) -> None:
        chunker = ContextChunker()

        assert chunker.max_chunk_size == 1000
        assert chunker.overlap == 200

    @pytest.mark.parametrize(
        ("max_chunk_size", "overlap"),
        [(0, 0), (-5, 0), (10, -1), (10, 10), (10, 20)],
    )
    def test_invalid_sizes_rejected(self, max_chunk_size: int, overlap: int) -> None:
        with pytest.raises(ConfigurationError):
            ContextChunker(max_chunk_size=max_chunk_size, overlap=overlap)


@pytest.mark.parametrize(
    ("length", "max_chunk_size", "overlap"),
    [(1, 1, 0), (10, 3, 2), (57, 10, 0), (100, 7, 3), (250, 100, 99), (1000, 1000, 200)],
)
def test_windows_cover_content_without_gaps(make_context, length: int, max_chunk_size: int, overlap: int) -> None:
    content = "".join(chr(ord("a") + i % 26) for i in range(length))
    chunks = ContextChunker(max_chunk_size=max_chunk_size, overlap=overlap).chunk(make_context(content=content))

    positions = [c.position for c in chunks]
    assert positions[0] == 0
    assert all(a < b for a, b in zip(positions, positions[1:]))
    for previous, current in zip(chunks, chunks[1:]):
        # Each window starts inside (or right at the end of) the previous one.
        assert current.position <= previous.position + len(previous.content)
    assert chunks[-1].position + len(chunks[-1].content) == length
