"""
Browser front-end: a single upload page served from the API process.
"""

from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

INDEX_HTML = (Path(__file__).parent / "index.html").read_text(encoding="utf-8")

router = APIRouter(tags=["Web"])


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index() -> HTMLResponse:
    return HTMLResponse(INDEX_HTML)
