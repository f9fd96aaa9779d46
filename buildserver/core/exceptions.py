# core/exceptions.py

"""
Exceptions raised by the job store and the build pipeline
"""

from typing import Optional


class BuildError(Exception):
    """Base class for failures that end a build job."""
    pass


class TemplateMissingError(BuildError):
    """Raised when the template source directory does not exist."""
    pass


class SpawnFailedError(BuildError):
    """Raised when a build command could not be launched at all."""

    def __init__(self, command: str, reason: str):
        self.command = command
        self.reason = reason
        super().__init__(f"Failed to launch '{command}': {reason}")


class CommandFailedError(BuildError):
    """Raised when a build command exits with a non-zero code."""

    def __init__(self, command: str, exit_code: Optional[int]):
        self.command = command
        self.exit_code = exit_code
        super().__init__(f"Command failed with exit code {exit_code}")


class ArtifactResolutionError(BuildError):
    pass


class DistDirectoryMissingError(ArtifactResolutionError):
    pass


class ArtifactNotFoundError(ArtifactResolutionError):
    pass


class JobStoreError(Exception):
    pass


class JobNotFoundError(JobStoreError):
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class JobAlreadyExistsError(JobStoreError):
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job already exists: {job_id}")


class InvalidJobTransitionError(JobStoreError):
    """Raised on a status regression, a progress decrease or a write to a finished job."""
    pass
