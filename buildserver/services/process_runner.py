# services/process_runner.py

"""
Process runner - spawns build commands and streams their output into a log sink
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

from buildserver.core.config import settings
from buildserver.core.exceptions import CommandFailedError, SpawnFailedError
from buildserver.services.command_resolver import CommandResolver, resolver_for_platform
from buildserver.services.log_classifier import (
    DiagnosticHint,
    KNOWN_HINTS,
    KeywordClassifier,
    LineClassifier,
    LineKind,
    hints_for,
)

logger = logging.getLogger(__name__)

LogSink = Callable[[str], None]

# npm can print very long single lines (minified stack traces, progress bars)
STREAM_LIMIT = 1024 * 1024


class RunStatus(str, Enum):
    SUCCEEDED = "succeeded"
    EXITED_NONZERO = "exited_nonzero"
    LAUNCH_FAILED = "launch_failed"


@dataclass
class RunOutcome:
    command: str
    status: RunStatus
    exit_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == RunStatus.SUCCEEDED

    def raise_for_status(self):
        if self.status == RunStatus.LAUNCH_FAILED:
            raise SpawnFailedError(self.command, self.error or "unknown error")
        if self.status == RunStatus.EXITED_NONZERO:
            raise CommandFailedError(self.command, self.exit_code)


def build_subprocess_env(
        electron_mirror: Optional[str] = None,
        extra_env: Optional[Dict[str, str]] = None,
        base: Optional[Dict[str, str]] = None
) -> Dict[str, str]:
    """Parent environment plus download mirror overrides"""
    env = dict(os.environ if base is None else base)
    if electron_mirror:
        env["ELECTRON_MIRROR"] = electron_mirror
    if extra_env:
        env.update(extra_env)
    return env


class ProcessRunner:
    def __init__(
            self,
            resolver: Optional[CommandResolver] = None,
            classifier: Optional[LineClassifier] = None,
            hints: Sequence[DiagnosticHint] = KNOWN_HINTS,
            env: Optional[Dict[str, str]] = None
    ):
        self.resolver = resolver or resolver_for_platform()
        self.classifier = classifier or KeywordClassifier()
        self.hints = tuple(hints)
        if env is None:
            env = build_subprocess_env(settings.electron_mirror, settings.extra_env)
        self.env = env

    async def run(
            self,
            command: str,
            args: Sequence[str],
            cwd: Union[str, Path],
            sink: LogSink,
            label: str = "runner"
    ) -> RunOutcome:
        """Run one command to completion.

        stdout and stderr are read concurrently. Lines keep their order within
        a stream, but the sink may see the two streams interleaved differently
        from how a terminal would have shown them.
        """
        program, argv = self.resolver.resolve(command, args)
        logger.info(f"[{label}] Spawning: {program} {' '.join(argv)}")

        try:
            process = await asyncio.create_subprocess_exec(
                program,
                *argv,
                cwd=str(cwd),
                env=self.env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=STREAM_LIMIT,
            )
        except OSError as e:
            logger.error(f"[{label} SPAWN ERROR] {e}")
            sink(f"SPAWN ERROR: {e}")
            return RunOutcome(command=command, status=RunStatus.LAUNCH_FAILED, error=str(e))

        pumps = [
            asyncio.ensure_future(self._pump_stdout(process.stdout, sink, label)),
            asyncio.ensure_future(self._pump_stderr(process.stderr, sink, label)),
        ]
        try:
            await asyncio.gather(*pumps)
            exit_code = await process.wait()
        finally:
            # Reached with the child still running only when a pump failed or we were cancelled
            for pump in pumps:
                pump.cancel()
            await asyncio.gather(*pumps, return_exceptions=True)
            if process.returncode is None:
                logger.warning(f"[{label}] Output capture stopped, killing pid {process.pid}")
                process.kill()
                await process.wait()

        if exit_code == 0:
            logger.info(f"[{label}] {command} finished")
            return RunOutcome(command=command, status=RunStatus.SUCCEEDED, exit_code=0)

        logger.warning(f"[{label}] {command} exited with code {exit_code}")
        return RunOutcome(command=command, status=RunStatus.EXITED_NONZERO, exit_code=exit_code)

    def format_stderr(self, line: str) -> List[str]:
        """Turn one stderr line into the log entries it produces"""
        if self.classifier.classify(line) == LineKind.ERROR:
            return [f"ERR: {line}", *hints_for(line, self.hints)]
        return [f"> {line}"]

    async def _pump_stdout(self, stream: asyncio.StreamReader, sink: LogSink, label: str):
        async for raw in _read_lines(stream):
            line = _decode(raw)
            if line:
                logger.info(f"[{label}] {line}")
                sink(line)

    async def _pump_stderr(self, stream: asyncio.StreamReader, sink: LogSink, label: str):
        async for raw in _read_lines(stream):
            line = _decode(raw)
            if not line:
                continue
            logger.info(f"[{label} STDERR] {line}")
            for entry in self.format_stderr(line):
                sink(entry)


async def _read_lines(stream: asyncio.StreamReader):
    """Yield lines from the stream. A line longer than the buffer limit comes out in pieces."""
    while True:
        try:
            raw = await stream.readuntil(b"\n")
        except asyncio.IncompleteReadError as e:
            if e.partial:
                yield e.partial
            return
        except asyncio.LimitOverrunError as e:
            raw = await stream.read(e.consumed)
        yield raw


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip()
