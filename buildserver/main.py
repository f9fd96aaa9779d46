# main.py

"""
Desktop App Build Server - Main Entry Point
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from buildserver.core.config import settings
from buildserver.routers import build_router
from buildserver.services.build_pipeline import BuildPipeline
from buildserver.services.job_store import JobStore

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


def create_app(pipeline: Optional[BuildPipeline] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        build_pipeline = pipeline or BuildPipeline(JobStore())
        app.state.pipeline = build_pipeline
        app.state.job_store = build_pipeline.store
        logger.info(f"{settings.app_name} ready, template dir: {settings.template_dir}")

        yield

        await build_pipeline.shutdown()
        build_pipeline.store.clear()
        logger.info(f"{settings.app_name} stopped")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(build_router.router, prefix=settings.api_prefix)
    app.include_router(build_router.router, include_in_schema=False)

    @app.get("/")
    async def root():
        """API root endpoint"""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "endpoints": {
                "build": f"{settings.api_prefix}/build",
                "job_status": f"{settings.api_prefix}/job/{{job_id}}",
                "download": f"{settings.api_prefix}/download/{{job_id}}",
                "health": "/health",
                "docs": "/docs"
            }
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        from datetime import datetime
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "version": settings.app_version,
            "active_builds": app.state.pipeline.active_jobs
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "buildserver.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
