"""Streaming of native service logs.

Logs are read from child processes (`journalctl`, `tail`) line by line.
Follow mode runs until the consumer stops iterating or the task is
cancelled (Ctrl+C); either way the child process is killed.
"""

import asyncio
import codecs
import contextlib
import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass

from svcman.exceptions import LogsUnavailableError

logger = logging.getLogger(__name__)

# Prefix colors for the multi-service view, assigned in rotation
SERVICE_COLORS = ["cyan", "green", "magenta", "yellow", "blue"]

CHUNK_SIZE = 4096

# Bytes of a reader's stderr kept for error messages
STDERR_TAIL = 4096


@dataclass
class LogOptions:
    """Options for reading service logs."""

    follow: bool = False
    lines: int | None = None
    since: str | None = None


@dataclass
class LogLine:
    """One line from a multiplexed log stream."""

    service: str
    text: str
    color: str


class LineBuffer:
    """Splits decoded text chunks into complete lines.

    A trailing partial line is held back until a later chunk completes it or
    `flush()` is called at end of stream.
    """

    def __init__(self) -> None:
        self._pending = ""

    def feed(self, chunk: str) -> list[str]:
        """Add a chunk and return the lines it completed."""
        lines = (self._pending + chunk).split("\n")
        self._pending = lines.pop()
        return lines

    def flush(self) -> str | None:
        """Return the held partial line, if any."""
        pending, self._pending = self._pending, ""
        return pending or None


async def _drain(stream: asyncio.StreamReader) -> bytes:
    """Read a stream to EOF, keeping only its last STDERR_TAIL bytes."""
    tail = b""
    while True:
        chunk = await stream.read(CHUNK_SIZE)
        if not chunk:
            return tail
        tail = (tail + chunk)[-STDERR_TAIL:]


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    """Kill a child process if it is still running and reap it."""
    if proc.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
    await proc.wait()


class LogStreamer:
    """Reads log output from native commands."""

    def __init__(self, palette: Sequence[str] = SERVICE_COLORS, chunk_size: int = CHUNK_SIZE) -> None:
        """Initialize the streamer.

        Args:
            palette: Colors assigned to services in the multiplexed view.
            chunk_size: Bytes requested per read from the child's stdout.
        """
        self._palette = list(palette)
        self._chunk_size = chunk_size

    async def _spawn(self, argv: Sequence[str], name: str) -> asyncio.subprocess.Process:
        logger.debug("Spawning log reader: %s", " ".join(argv))
        try:
            return await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise LogsUnavailableError(name, f"Could not run {argv[0]}: {e}") from e

    async def lines(self, argv: Sequence[str], name: str | None = None) -> AsyncIterator[str]:
        """Stream the stdout of a command line by line.

        Args:
            argv: Command to run.
            name: Service name used in error messages.

        Yields:
            Lines without their trailing newline.

        Raises:
            LogsUnavailableError: If the command cannot be started, or exits
                non-zero without producing any output.
        """
        name = name or argv[0]
        proc = await self._spawn(argv, name)
        assert proc.stdout is not None and proc.stderr is not None
        # stderr is read alongside stdout; a full pipe would block the child
        stderr_task = asyncio.create_task(_drain(proc.stderr))

        try:
            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            buffer = LineBuffer()
            produced = False

            while True:
                chunk = await proc.stdout.read(self._chunk_size)
                if not chunk:
                    break
                for line in buffer.feed(decoder.decode(chunk)):
                    produced = True
                    yield line

            for line in buffer.feed(decoder.decode(b"", final=True)):
                produced = True
                yield line
            rest = buffer.flush()
            if rest is not None:
                produced = True
                yield rest

            returncode = await proc.wait()
            if returncode != 0 and not produced:
                stderr = (await stderr_task).decode(errors="replace").strip()
                raise LogsUnavailableError(name, stderr or f"{argv[0]} exited with code {returncode}")
        finally:
            await _terminate(proc)
            stderr_task.cancel()
            await asyncio.gather(stderr_task, return_exceptions=True)

    def color_for(self, index: int) -> str:
        """Get the prefix color for the service at `index`."""
        return self._palette[index % len(self._palette)]

    async def multiplex(self, sources: Sequence[tuple[str, Sequence[str]]]) -> AsyncIterator[LogLine]:
        """Interleave the output of several log commands.

        Each source gets a color from the palette in rotation. A source that
        fails is logged and dropped; the others keep streaming.

        Args:
            sources: `(service name, argv)` pairs.

        Yields:
            LogLine items in arrival order. Blank lines are skipped.
        """
        queue: asyncio.Queue[LogLine | None] = asyncio.Queue()

        async def pump(name: str, argv: Sequence[str], color: str) -> None:
            try:
                async for text in self.lines(argv, name=name):
                    if text.strip():
                        queue.put_nowait(LogLine(service=name, text=text, color=color))
            except LogsUnavailableError as e:
                logger.warning("%s: %s", e.message, e.hint)
            finally:
                queue.put_nowait(None)

        tasks = [
            asyncio.create_task(pump(name, argv, self.color_for(index)))
            for index, (name, argv) in enumerate(sources)
        ]
        remaining = len(tasks)

        try:
            while remaining:
                item = await queue.get()
                if item is None:
                    remaining -= 1
                    continue
                yield item

            for task in tasks:
                if task.done() and not task.cancelled() and task.exception() is not None:
                    raise task.exception()
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
