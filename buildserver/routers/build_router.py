# routers/build_router.py

"""
Build Job API Routes
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse

from buildserver.core.exceptions import JobNotFoundError
from buildserver.models.job import Job, JobState, BuildRequest, BuildResponse
from buildserver.services.build_pipeline import BuildPipeline
from buildserver.services.job_store import JobStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Build"])


def get_pipeline(request: Request) -> BuildPipeline:
    return request.app.state.pipeline


def get_store(request: Request) -> JobStore:
    return request.app.state.job_store


@router.post("/build", response_model=BuildResponse)
async def start_build(request: BuildRequest, pipeline: BuildPipeline = Depends(get_pipeline)):
    """Accept a build request and return its job id immediately"""
    logger.info(f"POST /build - platform='{request.platform}'")
    job_id = pipeline.submit(request.platform, request.config)
    return BuildResponse(job_id=job_id)


@router.get("/job/{job_id}", response_model=Job)
async def get_job(job_id: str, store: JobStore = Depends(get_store)):
    """Get the current state of a build job"""
    try:
        return store.get(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")


@router.get("/download/{job_id}")
async def download_artifact(job_id: str, store: JobStore = Depends(get_store)):
    """Download the packaged app of a completed job"""
    try:
        job = store.get(job_id)
    except JobNotFoundError:
        job = None

    if job is None or job.status != JobState.COMPLETED or not job.file_path:
        raise HTTPException(status_code=404, detail="File not ready or job not found")

    artifact = Path(job.file_path)
    if not artifact.is_file():
        logger.warning(f"Artifact for job {job_id} is gone: {artifact}")
        raise HTTPException(status_code=404, detail="File not ready or job not found")

    return FileResponse(artifact, media_type="application/octet-stream", filename=artifact.name)
