# models/job.py

"""
Job-related data models
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from enum import Enum


class JobState(str, Enum):
    INITIALIZING = "initializing"
    BUILDING = "building"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.ERROR)


# Forward-only ordering of states; COMPLETED and ERROR share the last rank
STATE_RANK = {
    JobState.INITIALIZING: 0,
    JobState.BUILDING: 1,
    JobState.COMPLETED: 2,
    JobState.ERROR: 2,
}


class Job(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    status: JobState = JobState.INITIALIZING
    progress: int = Field(0, ge=0, le=100)
    logs: List[str] = Field(default_factory=list)
    file_path: Optional[str] = Field(None, alias="filePath")


class BuildRequest(BaseModel):
    platform: str = Field(..., description="Target platform, e.g. 'Windows', 'Mac', 'Linux'")
    config: Dict[str, Any] = Field(default_factory=dict, description="Data injected into the app template")


class BuildResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(..., alias="jobId")
