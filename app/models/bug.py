"""
Bug Models
==========
Pydantic models for bug records and the payloads that create or edit them.

Python attributes are snake_case; the JSON wire format is camelCase
(reportedBy, assignedTo, createdAt, isValid, ...) via the alias generator.

Request payloads are deliberately loose (plain optional strings) so that
rule violations reach app.core.validation and come back as field-scoped
errors instead of being rejected by the schema layer.

Fields (Bug):
    id                  — uuid4 hex, assigned at creation, immutable
    title               — 5–100 characters after trimming
    description         — 10–1000 characters after trimming
    severity / priority — low / medium / high / critical
    status              — open / in-progress / resolved
    reported_by         — free-form reporter name or email
    assigned_to         — optional assignee email ("" when unassigned)
    tags                — at most 5, each at least 2 characters
    created_at          — fixed at creation
    updated_at          — refreshed on every mutation
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Severity = Literal["low", "medium", "high", "critical"]
Priority = Literal["low", "medium", "high", "critical"]
Status = Literal["open", "in-progress", "resolved"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldError(CamelModel):
    field: str
    message: str


class ValidationResult(CamelModel):
    is_valid: bool
    errors: List[FieldError] = Field(default_factory=list)


class CreateBugRequest(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    severity: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    reported_by: Optional[str] = None
    assigned_to: Optional[str] = None
    tags: Optional[List[str]] = None
    steps_to_reproduce: Optional[str] = None
    expected_behavior: Optional[str] = None
    actual_behavior: Optional[str] = None


class UpdateBugRequest(CreateBugRequest):
    """Partial edit; fields left as None keep their stored value."""


class Bug(CamelModel):
    id: str
    title: str
    description: str
    severity: Severity = "medium"
    priority: Priority = "medium"
    status: Status = "open"
    reported_by: str
    assigned_to: str = ""
    tags: List[str] = Field(default_factory=list)
    steps_to_reproduce: str = ""
    expected_behavior: str = ""
    actual_behavior: str = ""
    created_at: datetime
    updated_at: datetime


class BugStats(CamelModel):
    total: int = 0
    open: int = 0
    in_progress: int = 0
    resolved: int = 0
