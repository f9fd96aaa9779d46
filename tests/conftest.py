import asyncio
import time
from pathlib import Path

import pytest

from buildserver.core.config import Settings
from buildserver.services.job_store import JobStore
from buildserver.services.process_runner import RunOutcome, RunStatus


class RecordingStore(JobStore):
    """JobStore that remembers every status and progress value it was given."""

    def __init__(self):
        super().__init__()
        self.history = {}

    def _record(self, job_id, kind, value):
        self.history.setdefault(job_id, []).append((kind, value))

    def create(self, job_id):
        job = super().create(job_id)
        self._record(job_id, "status", job.status.value)
        self._record(job_id, "progress", job.progress)
        return job

    def set_status(self, job_id, status):
        super().set_status(job_id, status)
        self._record(job_id, "status", status.value)

    def set_progress(self, job_id, progress):
        super().set_progress(job_id, progress)
        self._record(job_id, "progress", progress)

    def complete(self, job_id, file_path):
        super().complete(job_id, file_path)
        self._record(job_id, "progress", 100)
        self._record(job_id, "status", "completed")

    def fail(self, job_id, message):
        super().fail(job_id, message)
        self._record(job_id, "status", "error")

    def statuses(self, job_id):
        return [v for k, v in self.history.get(job_id, []) if k == "status"]

    def progress_values(self, job_id):
        return [v for k, v in self.history.get(job_id, []) if k == "progress"]


class FakeRunner:
    """Stands in for ProcessRunner.

    Records every call. By default install succeeds and any "run ..." build
    writes an artifact named after the build script into dist/.
    """

    def __init__(self, handler=None):
        self.calls = []
        self.handler = handler or build_writes_artifact

    async def run(self, command, args, cwd, sink, label="runner"):
        self.calls.append((command, list(args), Path(cwd)))
        result = self.handler(list(args), Path(cwd), sink)
        if asyncio.iscoroutine(result):
            result = await result
        return result


def succeeded(command="npm"):
    return RunOutcome(command=command, status=RunStatus.SUCCEEDED, exit_code=0)


def build_writes_artifact(args, cwd, sink):
    sink(f"ran {' '.join(args)}")
    if args and args[0] == "run":
        dist = cwd / "dist"
        dist.mkdir(exist_ok=True)
        (dist / "builder-debug.yml").write_text("debug")
        (dist / "app-1.0.0.dmg").write_bytes(b"DMG-BYTES")
    return succeeded()


def wait_until_terminal(store, job_id, timeout=10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if store.get(job_id).status.is_terminal:
            return store.get(job_id)
        time.sleep(0.01)
    raise AssertionError(f"job {job_id} did not finish")


async def wait_until_terminal_async(store, job_id, timeout=10.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if store.is_terminal(job_id):
            return store.get(job_id)
        await asyncio.sleep(0.01)
    raise AssertionError(f"job {job_id} did not finish")


@pytest.fixture
def template_dir(tmp_path):
    template = tmp_path / "template"
    (template / "src").mkdir(parents=True)
    (template / "package.json").write_text('{"name": "app", "version": "1.0.0"}')
    (template / "main.js").write_text("// shell")
    (template / "src" / "index.html").write_text("<html></html>")
    return template


@pytest.fixture
def test_settings(tmp_path, template_dir):
    return Settings(
        template_dir=str(template_dir),
        workspace_dir=str(tmp_path / "workspaces"),
    )


@pytest.fixture
def store():
    return RecordingStore()
