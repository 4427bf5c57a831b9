"""Unit tests for log streaming."""

import asyncio
import sys
from typing import Any

import pytest

from svcman.exceptions import LogsUnavailableError
from svcman.logs import SERVICE_COLORS, STDERR_TAIL, LineBuffer, LogLine, LogStreamer


def python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


async def collect(streamer: LogStreamer, argv: list[str]) -> list[str]:
    return [line async for line in streamer.lines(argv, name="api")]


class TestLineBuffer:
    """Tests for LineBuffer."""

    def test_complete_lines(self) -> None:
        buffer = LineBuffer()
        assert buffer.feed("a\nb\n") == ["a", "b"]
        assert buffer.flush() is None

    def test_partial_line_is_held(self) -> None:
        buffer = LineBuffer()
        assert buffer.feed("hel") == []
        assert buffer.feed("lo\nwor") == ["hello"]
        assert buffer.flush() == "wor"
        assert buffer.flush() is None


class TestLogStreamer:
    """Tests for LogStreamer."""

    def test_lines(self) -> None:
        lines = asyncio.run(collect(LogStreamer(), python("print('one'); print('two')")))
        assert lines == ["one", "two"]

    def test_trailing_partial_line_flushed_at_exit(self) -> None:
        code = "import sys; sys.stdout.write('a\\nb'); sys.stdout.flush()"
        lines = asyncio.run(collect(LogStreamer(chunk_size=1), python(code)))
        assert lines == ["a", "b"]

    def test_multibyte_split_across_chunks(self) -> None:
        code = "import sys; sys.stdout.buffer.write('caf\\u00e9\\n'.encode('utf-8'))"
        lines = asyncio.run(collect(LogStreamer(chunk_size=1), python(code)))
        assert lines == ["café"]

    def test_failure_without_output(self) -> None:
        code = "import sys; sys.stderr.write('No journal files were found.'); sys.exit(1)"
        with pytest.raises(LogsUnavailableError) as exc_info:
            asyncio.run(collect(LogStreamer(), python(code)))
        assert exc_info.value.hint == "No journal files were found."

    def test_missing_program(self) -> None:
        with pytest.raises(LogsUnavailableError, match="api"):
            asyncio.run(collect(LogStreamer(), ["/nonexistent/svcman-log-reader"]))

    def test_closing_follow_stream_kills_child(self, monkeypatch: pytest.MonkeyPatch) -> None:
        spawned: list[asyncio.subprocess.Process] = []
        original = asyncio.create_subprocess_exec

        async def spy(*args: Any, **kwargs: Any) -> asyncio.subprocess.Process:
            proc = await original(*args, **kwargs)
            spawned.append(proc)
            return proc

        monkeypatch.setattr(asyncio, "create_subprocess_exec", spy)
        code = "import time; print('ready', flush=True); time.sleep(60)"

        async def scenario() -> str:
            stream = LogStreamer().lines(python(code))
            first = await stream.__anext__()
            await stream.aclose()
            return first

        assert asyncio.run(scenario()) == "ready"
        assert len(spawned) == 1
        assert spawned[0].returncode is not None

    def test_color_rotation(self) -> None:
        streamer = LogStreamer()
        colors = [streamer.color_for(i) for i in range(len(SERVICE_COLORS) + 2)]

        assert colors[: len(SERVICE_COLORS)] == SERVICE_COLORS
        assert colors[len(SERVICE_COLORS)] == SERVICE_COLORS[0]
        assert colors[len(SERVICE_COLORS) + 1] == SERVICE_COLORS[1]


    def test_large_stderr_does_not_stall_stdout(self) -> None:
        code = "import sys; sys.stderr.write('x' * 512 * 1024); sys.stderr.flush(); print('done')"

        lines = asyncio.run(asyncio.wait_for(collect(LogStreamer(), python(code)), timeout=30))

        assert lines == ["done"]

    def test_failure_message_keeps_stderr_tail(self) -> None:
        code = "import sys; sys.stderr.write('x' * 100000 + ' disk full'); sys.exit(1)"

        with pytest.raises(LogsUnavailableError) as exc_info:
            asyncio.run(collect(LogStreamer(), python(code)))

        assert exc_info.value.hint is not None
        assert exc_info.value.hint.endswith("disk full")
        assert len(exc_info.value.hint) <= STDERR_TAIL


class TestMultiplex:
    """Tests for multi-service log interleaving."""

    def test_prefixes_and_colors(self) -> None:
        sources = [
            ("api", python("print('a1'); print(''); print('a2')")),
            ("worker", python("print('w1')")),
        ]

        async def scenario() -> list[LogLine]:
            return [line async for line in LogStreamer().multiplex(sources)]

        lines = asyncio.run(scenario())

        assert sorted((line.service, line.text) for line in lines) == [("api", "a1"), ("api", "a2"), ("worker", "w1")]
        assert {line.service: line.color for line in lines} == {"api": "cyan", "worker": "green"}
        api_lines = [line.text for line in lines if line.service == "api"]
        assert api_lines == ["a1", "a2"]

    def test_failing_source_does_not_stop_others(self) -> None:
        sources = [
            ("broken", ["/nonexistent/svcman-log-reader"]),
            ("worker", python("print('w1')")),
        ]

        async def scenario() -> list[LogLine]:
            return [line async for line in LogStreamer().multiplex(sources)]

        lines = asyncio.run(scenario())

        assert [(line.service, line.text) for line in lines] == [("worker", "w1")]

    def test_cancelling_consumer_kills_every_child(self, monkeypatch: pytest.MonkeyPatch) -> None:
        spawned: list[asyncio.subprocess.Process] = []
        original = asyncio.create_subprocess_exec

        async def spy(*args: Any, **kwargs: Any) -> asyncio.subprocess.Process:
            proc = await original(*args, **kwargs)
            spawned.append(proc)
            return proc

        monkeypatch.setattr(asyncio, "create_subprocess_exec", spy)
        endless = "import time\nwhile True:\n    print('tick', flush=True)\n    time.sleep(0.1)"
        sources = [("api", python(endless)), ("worker", python(endless))]

        async def scenario() -> set[str]:
            seen: set[str] = set()

            async def consume() -> None:
                async for line in LogStreamer().multiplex(sources):
                    seen.add(line.service)

            task = asyncio.create_task(consume())
            while seen != {"api", "worker"}:
                await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return seen

        assert asyncio.run(asyncio.wait_for(scenario(), timeout=30)) == {"api", "worker"}
        assert len(spawned) == 2
        assert all(proc.returncode is not None for proc in spawned)
