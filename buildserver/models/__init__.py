# models/__init__.py

from .job import Job, JobState, BuildRequest, BuildResponse

__all__ = [
    'Job',
    'JobState',
    'BuildRequest',
    'BuildResponse'
]
