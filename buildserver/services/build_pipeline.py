# services/build_pipeline.py

"""
Build pipeline - drives a job from the build request to a packaged artifact

Stages run strictly in order and each one moves the job's progress to a fixed
checkpoint once it succeeds:

    workspace setup     5
    data injection     10
    dependencies       40
    build & package    90
    artifact          100

A job runs as its own asyncio task. Any failure ends the job in the error
state with the reason as its last log line; nothing propagates to the caller
of submit() or to the event loop.
"""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Set

from buildserver.core.config import Settings, settings
from buildserver.core.exceptions import (
    ArtifactNotFoundError,
    BuildError,
    DistDirectoryMissingError,
    JobStoreError,
    TemplateMissingError,
)
from buildserver.models.job import JobState
from buildserver.services.artifact_resolver import resolve_artifact
from buildserver.services.job_store import JobStore
from buildserver.services.process_runner import ProcessRunner, build_subprocess_env
from buildserver.utils.file_handler import copy_template, write_app_data

logger = logging.getLogger(__name__)

PROGRESS_WORKSPACE = 5
PROGRESS_DATA = 10
PROGRESS_DEPENDENCIES = 40
PROGRESS_PACKAGED = 90


def select_build_args(
        platform: str,
        platform_args: Mapping[str, Sequence[str]],
        default: Sequence[str]
) -> List[str]:
    """Pick build arguments by looking for platform family names in the platform string.

    Matching is case-sensitive. Families are checked in mapping order and a
    later match overrides an earlier one.
    """
    selected = default
    for family, args in platform_args.items():
        if family in platform:
            selected = args
    return list(selected)


class BuildPipeline:
    def __init__(self, store: JobStore, runner=None, config: Settings = settings):
        self.store = store
        self.runner = runner or ProcessRunner(
            env=build_subprocess_env(config.electron_mirror, config.extra_env)
        )
        self.config = config
        self._tasks: Set[asyncio.Task] = set()

    @property
    def active_jobs(self) -> int:
        return len(self._tasks)

    def workspace_for(self, job_id: str) -> Path:
        return Path(self.config.workspace_dir).resolve() / job_id

    def submit(self, platform: str, app_config: Dict[str, Any]) -> str:
        """Create a job and start building it in the background.

        Must be called from a running event loop. Returns the job id before
        any stage has run.
        """
        job_id = str(uuid.uuid4())
        self.store.create(job_id)
        self.store.append_log(job_id, "> Job initialized...")
        logger.info(f"Job {job_id} accepted for platform '{platform}'")

        task = asyncio.create_task(
            self._supervise(job_id, platform, app_config),
            name=f"build-{job_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return job_id

    async def shutdown(self):
        """Cancel running builds and wait for their processes to be reaped"""
        tasks = list(self._tasks)
        if not tasks:
            return
        logger.info(f"Cancelling {len(tasks)} running build(s)")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _supervise(self, job_id: str, platform: str, app_config: Dict[str, Any]):
        try:
            await self.run(job_id, platform, app_config)
        except asyncio.CancelledError:
            self._fail_if_running(job_id, "Build cancelled by server shutdown")
            raise
        except Exception as e:
            logger.error(f"Job {job_id} supervisor caught: {e}", exc_info=True)
            self._fail_if_running(job_id, f"Internal error: {e}")

    def _fail_if_running(self, job_id: str, message: str):
        try:
            if not self.store.is_terminal(job_id):
                self.store.fail(job_id, message)
        except JobStoreError as e:
            logger.warning(f"Could not record failure for job {job_id}: {e}")

    async def run(self, job_id: str, platform: str, app_config: Dict[str, Any]):
        """Execute every stage for an already created job"""
        workspace = self.workspace_for(job_id)
        try:
            await self._setup_workspace(job_id, workspace)
            await self._inject_data(job_id, workspace, app_config)
            await self._install_dependencies(job_id, workspace)
            await self._build_package(job_id, workspace, platform)
            self._locate_artifact(job_id, workspace)
        except Exception as e:
            logger.error(f"Job {job_id} failed: {e}", exc_info=not isinstance(e, BuildError))
            self.store.fail(job_id, str(e))

    async def _setup_workspace(self, job_id: str, workspace: Path):
        self.store.set_status(job_id, JobState.BUILDING)
        self.store.append_log(job_id, f"> Creating workspace: {workspace}")

        template = Path(self.config.template_dir)
        if not template.is_dir():
            raise TemplateMissingError(
                f"Template folder missing! Please ensure '{template}' exists."
            )

        await asyncio.to_thread(copy_template, template, workspace)
        self.store.set_progress(job_id, PROGRESS_WORKSPACE)

    async def _inject_data(self, job_id: str, workspace: Path, app_config: Dict[str, Any]):
        await asyncio.to_thread(write_app_data, workspace, app_config, self.config.data_file)
        self.store.append_log(job_id, "> App Data injected into build source.")
        self.store.set_progress(job_id, PROGRESS_DATA)

    async def _install_dependencies(self, job_id: str, workspace: Path):
        self.store.append_log(job_id, "> Installing dependencies...")
        await self._run_tool(job_id, workspace, self.config.install_args)
        self.store.append_log(job_id, "> Dependencies installed.")
        self.store.set_progress(job_id, PROGRESS_DEPENDENCIES)

    async def _build_package(self, job_id: str, workspace: Path, platform: str):
        self.store.append_log(job_id, f"> Starting Electron build for {platform}...")
        build_args = select_build_args(
            platform,
            self.config.platform_build_args,
            self.config.default_build_args
        )
        await self._run_tool(job_id, workspace, build_args)
        self.store.append_log(job_id, "> Packaging complete.")
        self.store.set_progress(job_id, PROGRESS_PACKAGED)

    def _locate_artifact(self, job_id: str, workspace: Path):
        dist_dir = workspace / self.config.dist_dir_name
        if not dist_dir.is_dir():
            raise DistDirectoryMissingError("Dist folder not found. Build likely failed.")

        artifact = resolve_artifact(dist_dir, self.config.artifact_extensions)
        if artifact is None:
            raise ArtifactNotFoundError("Build finished but no artifact found in dist folder.")

        self.store.append_log(job_id, f"> Artifact ready: {artifact.name}")
        self.store.complete(job_id, str(artifact))

    async def _run_tool(self, job_id: str, workspace: Path, args: Sequence[str]):
        def sink(line: str):
            self.store.append_log(job_id, line)

        outcome = await self.runner.run(
            self.config.package_manager,
            args,
            workspace,
            sink,
            label=job_id
        )
        outcome.raise_for_status()
