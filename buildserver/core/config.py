# core/config.py

"""
Application Configuration
"""

from pydantic_settings import BaseSettings
from typing import Dict, List, Optional


class Settings(BaseSettings):
    app_name: str = "Desktop App Build Server"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # API Settings
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 3001

    # Directory Settings
    template_dir: str = "template"
    workspace_dir: str = "temp_workspace"
    dist_dir_name: str = "dist"
    data_file: str = "src/data.js"

    # Build Tool Settings
    package_manager: str = "npm"
    install_args: List[str] = ["install", "--loglevel=error"]
    default_build_args: List[str] = ["run", "build"]
    # Checked in order, the last family found in the platform string wins
    platform_build_args: Dict[str, List[str]] = {
        "Windows": ["run", "build:win"],
        "Mac": ["run", "build:mac"],
        "iOS": ["run", "build:mac"],
        "Android": ["run", "build:linux"],
        "Linux": ["run", "build:linux"],
    }
    artifact_extensions: List[str] = [".exe", ".dmg", ".AppImage", ".zip"]

    # Subprocess Environment
    electron_mirror: Optional[str] = "https://npmmirror.com/mirrors/electron/"
    extra_env: Dict[str, str] = {}

    class Config:
        env_prefix = "BUILD_SERVER_"
        case_sensitive = False


settings = Settings()
