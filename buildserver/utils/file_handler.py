# utils/file_handler.py

"""
Workspace file handling utilities
"""

import json
import shutil
from pathlib import Path
from typing import Dict, Any, Union


def copy_template(template_dir: Union[str, Path], workspace: Union[str, Path]) -> Path:
    """Copy the app template into a fresh job workspace"""
    workspace = Path(workspace)
    workspace.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(template_dir, workspace)
    return workspace


def render_app_data(config: Dict[str, Any]) -> str:
    """Script the template loads to read its configuration from window.APP_DATA"""
    return f"window.APP_DATA = {json.dumps(config, ensure_ascii=False)};"


def write_app_data(workspace: Union[str, Path], config: Dict[str, Any], data_file: str = "src/data.js") -> Path:
    """Write the injected app data into the workspace source tree"""
    filepath = Path(workspace) / data_file
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(render_app_data(config))

    return filepath
