"""
/api/bugs
=========
REST surface over BugService consumed by the browser front-end.

Status mapping:
    BugValidationError / InvalidActionError → 400 {"detail": {"message", "errors"}}
    BugNotFoundError                        → 404 {"detail": "Bug not found"}
    StorageError                            → 500 {"detail": "Failed to <operation>"}

Write bodies are taken as raw JSON objects; wrong-typed fields are reported
in the same 400 error list as rule violations.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from app.api.deps import get_bug_service
from app.core.exceptions import (
    BugNotFoundError,
    BugValidationError,
    InvalidActionError,
    StorageError,
)
from app.models.bug import (
    Bug,
    BugStats,
    FieldError,
    ValidationResult,
)
from app.services.bug_filters import BugFilter
from app.services.bug_service import BugService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bugs", tags=["Bugs"])


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------
def _validation_error(message: str, errors: List[FieldError]) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={
            "message": message,
            "errors": [error.model_dump(by_alias=True) for error in errors],
        },
    )


def _storage_error(operation: str, exc: StorageError) -> HTTPException:
    logger.error("Storage failure during '%s': %s", operation, exc.message, exc_info=True)
    return HTTPException(status_code=500, detail=f"Failed to {operation}")


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Bug not found")


# ---------------------------------------------------------------------------
# Collection endpoints
# ---------------------------------------------------------------------------
@router.get("", response_model=List[Bug])
async def list_bugs(
    search: str = "",
    status: Optional[str] = None,
    severity: Optional[str] = None,
    service: BugService = Depends(get_bug_service),
):
    """List bugs newest first, optionally narrowed by search text, status and severity."""
    try:
        return await service.list_bugs(BugFilter(search=search, status=status, severity=severity))
    except StorageError as e:
        raise _storage_error("fetch bugs", e)


@router.get("/stats", response_model=BugStats)
async def bug_stats(service: BugService = Depends(get_bug_service)):
    try:
        return await service.get_stats()
    except StorageError as e:
        raise _storage_error("fetch bug stats", e)


@router.post("/validate", response_model=ValidationResult)
async def validate_bug(payload: Dict[str, Any] = Body(...), service: BugService = Depends(get_bug_service)):
    """Dry-run validation for the report form; never writes."""
    return service.validate(payload)


@router.post("", response_model=Bug, status_code=201)
async def create_bug(payload: Dict[str, Any] = Body(...), service: BugService = Depends(get_bug_service)):
    try:
        return await service.create_bug(payload)
    except BugValidationError as e:
        raise _validation_error(e.message, e.errors)
    except StorageError as e:
        raise _storage_error("create bug", e)


# ---------------------------------------------------------------------------
# Item endpoints
# ---------------------------------------------------------------------------
@router.get("/{bug_id}", response_model=Bug)
async def get_bug(bug_id: str, service: BugService = Depends(get_bug_service)):
    try:
        return await service.get_bug(bug_id)
    except BugNotFoundError:
        raise _not_found()
    except StorageError as e:
        raise _storage_error("fetch bug", e)


@router.put("/{bug_id}", response_model=Bug)
async def update_bug(
    bug_id: str,
    payload: Dict[str, Any] = Body(...),
    service: BugService = Depends(get_bug_service),
):
    try:
        return await service.update_bug(bug_id, payload)
    except BugNotFoundError:
        raise _not_found()
    except BugValidationError as e:
        raise _validation_error(e.message, e.errors)
    except StorageError as e:
        raise _storage_error("update bug", e)


@router.patch("/{bug_id}/status", response_model=Bug)
async def change_status(
    bug_id: str,
    payload: Dict[str, Any] = Body(...),
    service: BugService = Depends(get_bug_service),
):
    try:
        return await service.change_status(bug_id, payload.get("status"))
    except BugNotFoundError:
        raise _not_found()
    except BugValidationError as e:
        raise _validation_error(e.message, e.errors)
    except StorageError as e:
        raise _storage_error("update bug", e)


@router.post("/{bug_id}/actions/{action}", response_model=Bug)
async def apply_action(bug_id: str, action: str, service: BugService = Depends(get_bug_service)):
    """Run a workflow action: start-progress, resolve or reopen."""
    try:
        return await service.apply_action(bug_id, action)
    except InvalidActionError as e:
        raise _validation_error(e.message, [FieldError(field="action", message=e.message)])
    except BugNotFoundError:
        raise _not_found()
    except BugValidationError as e:
        raise _validation_error(e.message, e.errors)
    except StorageError as e:
        raise _storage_error("update bug", e)


@router.delete("/{bug_id}")
async def delete_bug(bug_id: str, service: BugService = Depends(get_bug_service)):
    try:
        await service.delete_bug(bug_id)
    except BugNotFoundError:
        raise _not_found()
    except StorageError as e:
        raise _storage_error("delete bug", e)
    return {"message": "Bug deleted successfully"}
