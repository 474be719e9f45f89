"""Tests for the write-through streaming sink."""
from __future__ import annotations

import io

import pytest

from core.stream import StreamSink, stdout_sink


async def _fragments(*parts: str, fail_after: int | None = None):
    for index, part in enumerate(parts):
        if fail_after is not None and index == fail_after:
            raise ConnectionError("stream reset")
        yield part


@pytest.mark.asyncio
async def test_returned_text_equals_concatenated_writes() -> None:
    writes: list[str] = []
    sink = StreamSink(writes.append)

    result = await sink.drain(_fragments("Hel", "lo, ", "world"))

    assert result == "Hello, world"
    assert writes == ["Hel", "lo, ", "world"]
    assert "".join(writes) == result
    assert sink.fragment_count == 3


@pytest.mark.asyncio
async def test_end_called_once_after_last_fragment() -> None:
    calls: list[str] = []
    sink = StreamSink(calls.append, end=lambda: calls.append("<end>"))

    await sink.drain(_fragments("a", "b"))

    assert calls == ["a", "b", "<end>"]


@pytest.mark.asyncio
async def test_empty_stream_returns_empty_text() -> None:
    writes: list[str] = []

    result = await StreamSink(writes.append).drain(_fragments())

    assert result == ""
    assert writes == []


@pytest.mark.asyncio
async def test_failure_mid_stream_propagates_and_keeps_written_fragments() -> None:
    calls: list[str] = []
    sink = StreamSink(calls.append, end=lambda: calls.append("<end>"))

    with pytest.raises(ConnectionError):
        await sink.drain(_fragments("Hi", " the", "re", fail_after=2))

    assert calls == ["Hi", " the"]


@pytest.mark.asyncio
async def test_stdout_sink_terminates_with_newline() -> None:
    out = io.StringIO()

    result = await stdout_sink(out).drain(_fragments("Hi", " there"))

    assert result == "Hi there"
    assert out.getvalue() == "Hi there\n"


@pytest.mark.asyncio
async def test_stdout_sink_defaults_to_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    await stdout_sink().drain(_fragments("ok"))

    assert capsys.readouterr().out == "ok\n"
