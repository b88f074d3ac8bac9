from __future__ import annotations

from pathlib import Path

from fastapi.templating import Jinja2Templates

from complaint_response_app import __version__

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.trim_blocks = True
templates.env.lstrip_blocks = True
templates.env.globals["app_version"] = __version__

__all__ = ["TEMPLATES_DIR", "templates"]
