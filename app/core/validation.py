"""
Bug Validation
==============
Field-level rules for bug-report payloads and tag lists.

DETERMINISM CONTRACT:
  - Pure functions: no I/O, no logging, no mutation of the input.
  - Every failing rule is collected; validation never stops at the first error.
  - At most one error per field, except tags where "too many" and "too short"
    are distinct causes and may both be reported.

Message strings are part of the API contract (clients match on them).
"""
import re
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from app.core.constants import (
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    MAX_TAGS,
    PRIORITIES,
    SEVERITIES,
    STATUSES,
    TAG_MIN_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)
from app.models.bug import CreateBugRequest, FieldError, ValidationResult

# local@domain.tld with no whitespace anywhere; "invalid@" must not match.
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

BugPayload = Union[CreateBugRequest, Mapping]

# Request key (snake_case name or camelCase alias) -> field name
_FIELD_BY_KEY: Dict[str, str] = {}
for _name, _info in CreateBugRequest.model_fields.items():
    _FIELD_BY_KEY[_name] = _name
    _FIELD_BY_KEY[_info.alias or _name] = _name

_TYPE_LABELS = {
    "title": "Title",
    "description": "Description",
    "severity": "Severity",
    "priority": "Priority",
    "status": "Status",
    "reported_by": "Reporter name",
    "assigned_to": "Assignee",
    "steps_to_reproduce": "Steps to reproduce",
    "expected_behavior": "Expected behavior",
    "actual_behavior": "Actual behavior",
}


def _type_error(name: str) -> FieldError:
    field = CreateBugRequest.model_fields[name].alias or name
    if name == "tags":
        return FieldError(field=field, message="Tags must be a list of strings")
    return FieldError(field=field, message=f"{_TYPE_LABELS.get(name, name)} must be a string")


def parse_bug_payload(payload: BugPayload) -> Tuple[CreateBugRequest, List[FieldError]]:
    """
    Coerce a raw payload into a CreateBugRequest.

    Fields holding a value of the wrong JSON type are reported as FieldErrors
    and dropped from the request, so every other field still reaches the
    rules in validate_bug_request.
    """
    if isinstance(payload, CreateBugRequest):
        return payload, []
    data = dict(payload)
    try:
        return CreateBugRequest.model_validate(data), []
    except ValidationError as e:
        bad_fields: List[str] = []
        for error in e.errors():
            loc = error.get("loc") or ()
            name = _FIELD_BY_KEY.get(str(loc[0])) if loc else None
            if name and name not in bad_fields:
                bad_fields.append(name)

    cleaned = {key: value for key, value in data.items() if _FIELD_BY_KEY.get(key) not in bad_fields}
    return CreateBugRequest.model_validate(cleaned), [_type_error(name) for name in bad_fields]


def merge_errors(type_errors: Iterable[FieldError], rule_errors: Iterable[FieldError]) -> List[FieldError]:
    """Type errors first; rule errors for the same field are dropped."""
    type_errors = list(type_errors)
    typed = {error.field for error in type_errors}
    return type_errors + [error for error in rule_errors if error.field not in typed]


def _check_length(
    field: str,
    label: str,
    value: Optional[str],
    min_length: int,
    max_length: int,
) -> Optional[FieldError]:
    text = (value or "").strip()
    if not text:
        return FieldError(field=field, message=f"{label} is required")
    if len(text) < min_length:
        return FieldError(
            field=field,
            message=f"{label} must be at least {min_length} characters long",
        )
    if len(text) > max_length:
        return FieldError(
            field=field,
            message=f"{label} must be less than {max_length} characters",
        )
    return None


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))


def validate_status(status: Optional[str]) -> Optional[FieldError]:
    """Return a status error when the value is not one of STATUSES."""
    if status not in STATUSES:
        return FieldError(field="status", message="Invalid status value")
    return None


def validate_tags(tags: Iterable[str]) -> ValidationResult:
    """
    Validate an ordered tag list independently of the rest of the payload.

    An empty string trims to length 0 and therefore fails the minimum
    length rule like any other short tag.
    """
    tags = list(tags)
    errors: List[FieldError] = []

    if len(tags) > MAX_TAGS:
        errors.append(FieldError(field="tags", message=f"Maximum {MAX_TAGS} tags allowed"))

    if any(len((tag or "").strip()) < TAG_MIN_LENGTH for tag in tags):
        errors.append(FieldError(
            field="tags",
            message=f"Each tag must be at least {TAG_MIN_LENGTH} characters long",
        ))

    return ValidationResult(is_valid=not errors, errors=errors)


def validate_bug_request(payload: BugPayload) -> ValidationResult:
    """
    Check a candidate bug payload against every field rule.

    Parameters
    ----------
    payload : CreateBugRequest | Mapping
        Candidate fields. Mappings may use snake_case or camelCase keys.
        Severity and priority are expected to be default-filled by the
        caller; a missing value is reported as invalid here.

    Returns
    -------
    ValidationResult
        is_valid is True only when errors is empty.
    """
    request, type_errors = parse_bug_payload(payload)
    errors: List[FieldError] = []

    title_error = _check_length(
        "title", "Title", request.title, TITLE_MIN_LENGTH, TITLE_MAX_LENGTH
    )
    if title_error:
        errors.append(title_error)

    description_error = _check_length(
        "description", "Description", request.description,
        DESCRIPTION_MIN_LENGTH, DESCRIPTION_MAX_LENGTH,
    )
    if description_error:
        errors.append(description_error)

    if request.severity not in SEVERITIES:
        errors.append(FieldError(field="severity", message="Invalid severity level"))

    if request.priority not in PRIORITIES:
        errors.append(FieldError(field="priority", message="Invalid priority level"))

    if not (request.reported_by or "").strip():
        errors.append(FieldError(field="reportedBy", message="Reporter name is required"))

    assignee = (request.assigned_to or "").strip()
    if assignee and not is_valid_email(assignee):
        errors.append(FieldError(field="assignedTo", message="Invalid email format for assignee"))

    if request.status is not None:
        status_error = validate_status(request.status)
        if status_error:
            errors.append(status_error)

    if request.tags is not None:
        errors.extend(validate_tags(request.tags).errors)

    merged = merge_errors(type_errors, errors)
    return ValidationResult(is_valid=not merged, errors=merged)


def format_validation_errors(errors: Iterable[FieldError]) -> str:
    """Render errors as 'field: message' entries joined by ', '."""
    return ", ".join(f"{error.field}: {error.message}" for error in errors)
