"""
Write-through sink for streamed model output.
"""
import sys
from typing import AsyncIterable, Callable, Optional, TextIO


class StreamSink:
    """
    Forwards each fragment to `write` as soon as it arrives and returns the
    accumulated text once the stream is exhausted.

    If the stream raises, nothing is returned and the error propagates;
    fragments already written stay written.
    """

    def __init__(self, write: Callable[[str], None], end: Optional[Callable[[], None]] = None) -> None:
        self.write = write
        self.end = end
        self.fragment_count = 0

    async def drain(self, fragments: AsyncIterable[str]) -> str:
        response_text = ""
        async for text in fragments:
            response_text += text
            self.fragment_count += 1
            self.write(text)

        if self.end is not None:
            self.end()
        return response_text


def stdout_sink(stream: TextIO | None = None) -> StreamSink:
    """Sink printing fragments to a text stream, newline-terminated."""
    out = stream if stream is not None else sys.stdout

    def write(text: str) -> None:
        out.write(text)
        out.flush()

    return StreamSink(write, end=lambda: write("\n"))
