"""
/api/debug
Read or clear the in-memory debug sink (recent logs, errors and requests).
Disabled when ENABLE_DEBUG_ENDPOINT=false.
"""
from fastapi import APIRouter, HTTPException

from app.core import config
from app.services.debug_log import debug_log

router = APIRouter(prefix="/api/debug", tags=["Debug"])


def _ensure_enabled() -> None:
    if not config.ENABLE_DEBUG_ENDPOINT:
        raise HTTPException(status_code=404, detail="Not found")


@router.get("")
async def get_debug_log():
    _ensure_enabled()
    return debug_log.snapshot()


@router.delete("")
async def clear_debug_log():
    _ensure_enabled()
    debug_log.clear()
    return {"message": "Debug log cleared"}
