"""
Bug Service
===========
Validator-consuming service over an injected BugRepository.

Contract:
    - Validation runs before any write; a failed validation raises
      BugValidationError carrying the full error list and writes nothing.
    - A missing id raises BugNotFoundError, distinct from validation failure.
    - StorageError from the repository propagates unchanged (no retries).
    - Every successful mutation sets updated_at strictly after its previous value.
    - Status changes go through lifecycle.can_transition.
"""
import logging
import uuid
from typing import List, Optional

from app.core import lifecycle
from app.core.constants import DEFAULT_PRIORITY, DEFAULT_SEVERITY, DEFAULT_STATUS
from app.core.exceptions import BugNotFoundError, BugValidationError, InvalidActionError
from app.core.validation import (
    BugPayload,
    merge_errors,
    parse_bug_payload,
    validate_bug_request,
    validate_status,
)
from app.models.bug import (
    Bug,
    BugStats,
    CreateBugRequest,
    FieldError,
    UpdateBugRequest,
    ValidationResult,
)
from app.services.bug_filters import BugFilter, apply_filter, count_by_status
from app.services.bug_repository import BugRepository
from app.utils.clock import next_timestamp, utc_now

logger = logging.getLogger(__name__)

# Fields a create/update payload may set, in Bug attribute names.
_EDITABLE_FIELDS = (
    "title",
    "description",
    "severity",
    "priority",
    "status",
    "reported_by",
    "assigned_to",
    "tags",
    "steps_to_reproduce",
    "expected_behavior",
    "actual_behavior",
)


def _with_defaults(payload: CreateBugRequest) -> CreateBugRequest:
    """Fill severity / priority / tags the way the report form does."""
    return payload.model_copy(update={
        "severity": payload.severity if payload.severity is not None else DEFAULT_SEVERITY,
        "priority": payload.priority if payload.priority is not None else DEFAULT_PRIORITY,
        "tags": payload.tags if payload.tags is not None else [],
    })


def _normalised_fields(request: CreateBugRequest) -> dict:
    """Trimmed storage values for every field present on a validated request."""
    fields = {}
    for name in _EDITABLE_FIELDS:
        value = getattr(request, name)
        if value is None:
            continue
        if name == "tags":
            value = [tag.strip() for tag in value]
        elif isinstance(value, str):
            value = value.strip()
        fields[name] = value
    return fields


def _request_from_bug(bug: Bug) -> CreateBugRequest:
    return CreateBugRequest(**{name: getattr(bug, name) for name in _EDITABLE_FIELDS})


class BugService:
    """
    CRUD and workflow operations on bug records.

    Usage:
        service = BugService(InMemoryBugRepository())
        bug = await service.create_bug(CreateBugRequest(...))
        bug = await service.apply_action(bug.id, "start-progress")
    """

    def __init__(self, repository: BugRepository, allow_direct_resolve: Optional[bool] = None) -> None:
        self.repository = repository
        self.allow_direct_resolve = allow_direct_resolve

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def list_bugs(self, bug_filter: Optional[BugFilter] = None) -> List[Bug]:
        """All matching bugs, newest first."""
        bugs = apply_filter(await self.repository.list(), bug_filter)
        return sorted(bugs, key=lambda bug: bug.created_at, reverse=True)

    async def get_bug(self, bug_id: str) -> Bug:
        bug = await self.repository.get(bug_id)
        if bug is None:
            raise BugNotFoundError(bug_id)
        return bug

    async def get_stats(self) -> BugStats:
        return count_by_status(await self.repository.list())

    def validate(self, payload: BugPayload) -> ValidationResult:
        """Dry-run the create rules without touching the store."""
        request, type_errors = parse_bug_payload(payload)
        errors = merge_errors(type_errors, validate_bug_request(_with_defaults(request)).errors)
        return ValidationResult(is_valid=not errors, errors=errors)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    async def create_bug(self, payload: BugPayload) -> Bug:
        request, type_errors = parse_bug_payload(payload)
        request = _with_defaults(request)
        errors = merge_errors(type_errors, validate_bug_request(request).errors)
        if errors:
            logger.warning("Rejected bug create: %d validation error(s)", len(errors))
            raise BugValidationError(errors)

        fields = _normalised_fields(request)
        fields["status"] = DEFAULT_STATUS
        now = utc_now()
        bug = Bug(id=uuid.uuid4().hex, created_at=now, updated_at=now, **fields)

        created = await self.repository.create(bug)
        logger.info("Created bug %s (%s/%s)", created.id, created.severity, created.priority)
        return created

    async def update_bug(self, bug_id: str, payload: BugPayload) -> Bug:
        """
        Merge payload over the stored record, re-validate, and persist.

        Fields left as None keep their stored value. Status changes must be
        legal lifecycle transitions.
        """
        existing = await self.get_bug(bug_id)
        request, type_errors = parse_bug_payload(payload)
        return await self._apply_update(existing, request, type_errors)

    async def _apply_update(
        self,
        existing: Bug,
        request: CreateBugRequest,
        type_errors: Optional[List[FieldError]] = None,
    ) -> Bug:
        changes = request.model_dump(exclude_none=True)
        merged = _request_from_bug(existing).model_copy(update=changes)

        errors: List[FieldError] = merge_errors(type_errors or [], validate_bug_request(merged).errors)
        new_status = changes.get("status")
        if new_status is not None and validate_status(new_status) is None:
            if not lifecycle.can_transition(existing.status, new_status, self.allow_direct_resolve):
                errors.append(FieldError(
                    field="status",
                    message=lifecycle.transition_error_message(existing.status, new_status),
                ))
        if errors:
            logger.warning("Rejected update of bug %s: %d validation error(s)", existing.id, len(errors))
            raise BugValidationError(errors)

        updated = existing.model_copy(update={
            **_normalised_fields(merged),
            "updated_at": next_timestamp(existing.updated_at),
        })
        saved = await self.repository.update(updated)
        if saved is None:
            raise BugNotFoundError(existing.id)

        if existing.status != saved.status:
            logger.info("Bug %s status %s -> %s", existing.id, existing.status, saved.status)
        else:
            logger.info("Updated bug %s", existing.id)
        return saved

    async def change_status(self, bug_id: str, status: str) -> Bug:
        status_error = validate_status(status)
        if status_error:
            raise BugValidationError([status_error])
        return await self.update_bug(bug_id, UpdateBugRequest(status=status))

    async def apply_action(self, bug_id: str, action: str) -> Bug:
        """Apply a named workflow action (start-progress, resolve, reopen)."""
        move = lifecycle.resolve_action(action)
        if move is None:
            raise InvalidActionError(action)
        source, target = move

        existing = await self.get_bug(bug_id)
        if existing.status != source:
            raise BugValidationError([FieldError(
                field="status",
                message=f"Cannot {action} a bug that is {existing.status}",
            )])
        return await self._apply_update(existing, UpdateBugRequest(status=target))

    async def delete_bug(self, bug_id: str) -> None:
        if not await self.repository.delete(bug_id):
            raise BugNotFoundError(bug_id)
        logger.info("Deleted bug %s", bug_id)
