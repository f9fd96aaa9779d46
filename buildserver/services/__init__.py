# services/__init__.py

from .job_store import JobStore
from .process_runner import ProcessRunner, RunOutcome, RunStatus
from .build_pipeline import BuildPipeline

__all__ = ['JobStore', 'ProcessRunner', 'RunOutcome', 'RunStatus', 'BuildPipeline']
