"""
Sender page - served to the phone for every other GET request.
"""
from pathlib import Path

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from phone_bridge.config.settings import settings

router = APIRouter(tags=["sender"])


@router.get("/{path:path}", include_in_schema=False)
async def sender_page(path: str = ""):
    page = Path(settings.SENDER_PAGE_PATH)
    if not page.is_file():
        raise HTTPException(status_code=404, detail="Sender page not found")

    return FileResponse(
        page,
        media_type="text/html; charset=utf-8",
        headers={"Cache-Control": "no-cache"},
    )
