"""
Service Tests — BugService
==========================
CRUD, workflow actions and failure semantics over the in-memory repository.
Async calls are driven with asyncio.run; storage failures are mocked.
"""
import asyncio
from datetime import timedelta

import pytest
from unittest.mock import AsyncMock

from app.core.exceptions import (
    BugNotFoundError,
    BugValidationError,
    InvalidActionError,
    StorageError,
)
from app.models.bug import CreateBugRequest, UpdateBugRequest
from app.services.bug_filters import BugFilter
from app.services.bug_repository import InMemoryBugRepository
from app.services.bug_service import BugService


def _request(**overrides):
    data = {
        "title": "Valid bug title",
        "description": "This is a valid bug description that is long enough",
        "severity": "high",
        "priority": "medium",
        "reportedBy": "test@example.com",
        "tags": ["bug", "frontend"],
    }
    data.update(overrides)
    return CreateBugRequest.model_validate(data)


@pytest.fixture
def repo():
    return InMemoryBugRepository()


@pytest.fixture
def service(repo):
    return BugService(repo, allow_direct_resolve=False)


# ===================================================================
# Create
# ===================================================================
def test_create_assigns_id_status_and_timestamps(service, repo):
    bug = asyncio.run(service.create_bug(_request()))

    assert bug.id
    assert bug.status == "open"
    assert bug.created_at == bug.updated_at
    assert bug.tags == ["bug", "frontend"]
    assert len(repo) == 1


def test_create_fills_default_severity_and_priority(service):
    bug = asyncio.run(service.create_bug(_request(severity=None, priority=None, tags=None)))
    assert bug.severity == "medium"
    assert bug.priority == "medium"
    assert bug.tags == []


def test_create_ignores_requested_status(service):
    bug = asyncio.run(service.create_bug(_request(status="resolved")))
    assert bug.status == "open"


def test_create_trims_fields(service):
    bug = asyncio.run(service.create_bug(_request(
        title="  Padded title  ",
        reportedBy="  Jane  ",
        assignedTo=" dev@example.com ",
        tags=[" ui ", "api"],
    )))
    assert bug.title == "Padded title"
    assert bug.reported_by == "Jane"
    assert bug.assigned_to == "dev@example.com"
    assert bug.tags == ["ui", "api"]


def test_create_invalid_payload_writes_nothing(service, repo):
    with pytest.raises(BugValidationError) as exc_info:
        asyncio.run(service.create_bug(_request(title="", tags=["", "ok"])))

    fields = {e.field for e in exc_info.value.errors}
    assert fields == {"title", "tags"}
    assert "title: Title is required" in exc_info.value.message
    assert len(repo) == 0


def test_create_from_mapping_reports_wrong_types(service, repo):
    with pytest.raises(BugValidationError) as exc_info:
        asyncio.run(service.create_bug({
            "title": 12345,
            "description": "",
            "reportedBy": "",
            "tags": "bug",
        }))

    assert [e.field for e in exc_info.value.errors] == ["title", "tags", "description", "reportedBy"]
    assert len(repo) == 0


def test_create_generates_unique_ids(service):
    async def create_many():
        return await asyncio.gather(*(service.create_bug(_request()) for _ in range(5)))

    bugs = asyncio.run(create_many())
    assert len({bug.id for bug in bugs}) == 5


def test_create_propagates_storage_error(service, repo):
    repo.create = AsyncMock(side_effect=StorageError("disk gone"))
    with pytest.raises(StorageError):
        asyncio.run(service.create_bug(_request()))


# ===================================================================
# Read
# ===================================================================
def test_list_returns_newest_first(service, repo):
    first = asyncio.run(service.create_bug(_request(title="First bug")))
    second = asyncio.run(service.create_bug(_request(title="Second bug")))
    # Make ordering independent of clock resolution
    asyncio.run(repo.update(second.model_copy(
        update={"created_at": first.created_at + timedelta(seconds=1)}
    )))

    titles = [bug.title for bug in asyncio.run(service.list_bugs())]
    assert titles == ["Second bug", "First bug"]


def test_list_filters(service):
    asyncio.run(service.create_bug(_request(title="Login button broken", severity="low")))
    target = asyncio.run(service.create_bug(_request(title="Crash on save", tags=["storage"])))
    asyncio.run(service.apply_action(target.id, "start-progress"))

    by_search = asyncio.run(service.list_bugs(BugFilter(search="STORAGE")))
    assert [b.id for b in by_search] == [target.id]

    by_status = asyncio.run(service.list_bugs(BugFilter(status="in-progress")))
    assert [b.id for b in by_status] == [target.id]

    by_severity = asyncio.run(service.list_bugs(BugFilter(severity="low")))
    assert [b.title for b in by_severity] == ["Login button broken"]

    everything = asyncio.run(service.list_bugs(BugFilter(status="all", severity="all")))
    assert len(everything) == 2


def test_get_missing_bug_raises_not_found(service):
    with pytest.raises(BugNotFoundError):
        asyncio.run(service.get_bug("missing"))


def test_stats(service):
    a = asyncio.run(service.create_bug(_request()))
    asyncio.run(service.create_bug(_request()))
    asyncio.run(service.apply_action(a.id, "start-progress"))

    stats = asyncio.run(service.get_stats())
    assert (stats.total, stats.open, stats.in_progress, stats.resolved) == (2, 1, 1, 0)


def test_validate_is_a_dry_run(service, repo):
    result = service.validate(_request(severity=None, priority=None))
    assert result.is_valid is True
    assert len(repo) == 0


# ===================================================================
# Update
# ===================================================================
def test_update_to_in_progress_advances_updated_at(service):
    bug = asyncio.run(service.create_bug(_request()))
    updated = asyncio.run(service.update_bug(bug.id, UpdateBugRequest(status="in-progress")))

    assert updated.status == "in-progress"
    assert updated.updated_at > bug.updated_at
    assert updated.updated_at > bug.created_at
    assert updated.created_at == bug.created_at
    assert updated.id == bug.id


def test_update_merges_partial_payload(service):
    bug = asyncio.run(service.create_bug(_request(assignedTo="dev@example.com")))
    updated = asyncio.run(service.update_bug(bug.id, UpdateBugRequest(title="Renamed bug title")))

    assert updated.title == "Renamed bug title"
    assert updated.description == bug.description
    assert updated.assigned_to == "dev@example.com"


def test_update_can_clear_assignee(service):
    bug = asyncio.run(service.create_bug(_request(assignedTo="dev@example.com")))
    updated = asyncio.run(service.update_bug(bug.id, UpdateBugRequest(assigned_to="")))
    assert updated.assigned_to == ""


def test_update_invalid_payload_leaves_record_untouched(service):
    bug = asyncio.run(service.create_bug(_request()))
    with pytest.raises(BugValidationError):
        asyncio.run(service.update_bug(bug.id, UpdateBugRequest(title="abc", assigned_to="invalid@")))

    stored = asyncio.run(service.get_bug(bug.id))
    assert stored == bug


def test_update_invalid_status(service):
    bug = asyncio.run(service.create_bug(_request()))
    with pytest.raises(BugValidationError) as exc_info:
        asyncio.run(service.update_bug(bug.id, UpdateBugRequest(status="closed")))

    assert [(e.field, e.message) for e in exc_info.value.errors] == [
        ("status", "Invalid status value")
    ]
    assert asyncio.run(service.get_bug(bug.id)).status == "open"


def test_update_wrong_type_reports_field_and_keeps_record(service):
    bug = asyncio.run(service.create_bug(_request()))
    with pytest.raises(BugValidationError) as exc_info:
        asyncio.run(service.update_bug(bug.id, {"title": ["not", "text"], "assignedTo": "invalid@"}))

    assert [(e.field, e.message) for e in exc_info.value.errors] == [
        ("title", "Title must be a string"),
        ("assignedTo", "Invalid email format for assignee"),
    ]
    assert asyncio.run(service.get_bug(bug.id)) == bug


def test_change_status_rejects_non_string_status(service):
    bug = asyncio.run(service.create_bug(_request()))
    with pytest.raises(BugValidationError) as exc_info:
        asyncio.run(service.change_status(bug.id, 3))
    assert [(e.field, e.message) for e in exc_info.value.errors] == [
        ("status", "Invalid status value")
    ]


def test_update_illegal_transition(service):
    bug = asyncio.run(service.create_bug(_request()))
    with pytest.raises(BugValidationError) as exc_info:
        asyncio.run(service.change_status(bug.id, "resolved"))

    assert exc_info.value.errors[0].message == "Cannot change status from open to resolved"
    assert asyncio.run(service.get_bug(bug.id)).status == "open"


def test_direct_resolve_allowed_when_enabled(repo):
    service = BugService(repo, allow_direct_resolve=True)
    bug = asyncio.run(service.create_bug(_request()))
    assert asyncio.run(service.change_status(bug.id, "resolved")).status == "resolved"


def test_update_missing_bug_raises_not_found(service):
    with pytest.raises(BugNotFoundError):
        asyncio.run(service.update_bug("missing", UpdateBugRequest(title="Updated title")))


def test_successive_updates_strictly_increase_updated_at(service):
    bug = asyncio.run(service.create_bug(_request()))
    stamps = [bug.updated_at]
    for title in ("Another title", "Yet another title", "Final title here"):
        bug = asyncio.run(service.update_bug(bug.id, UpdateBugRequest(title=title)))
        stamps.append(bug.updated_at)
    assert stamps == sorted(stamps)
    assert len(set(stamps)) == len(stamps)


# ===================================================================
# Workflow actions
# ===================================================================
def test_full_workflow_cycle(service):
    bug = asyncio.run(service.create_bug(_request()))
    bug = asyncio.run(service.apply_action(bug.id, "start-progress"))
    assert bug.status == "in-progress"
    bug = asyncio.run(service.apply_action(bug.id, "resolve"))
    assert bug.status == "resolved"
    bug = asyncio.run(service.apply_action(bug.id, "reopen"))
    assert bug.status == "open"


def test_action_from_wrong_status(service):
    bug = asyncio.run(service.create_bug(_request()))
    with pytest.raises(BugValidationError) as exc_info:
        asyncio.run(service.apply_action(bug.id, "reopen"))
    assert exc_info.value.errors[0].message == "Cannot reopen a bug that is open"


def test_action_reads_the_record_once(service, repo):
    bug = asyncio.run(service.create_bug(_request()))
    repo.get = AsyncMock(wraps=repo.get)

    updated = asyncio.run(service.apply_action(bug.id, "start-progress"))

    assert updated.status == "in-progress"
    repo.get.assert_awaited_once_with(bug.id)


def test_unknown_action(service):
    bug = asyncio.run(service.create_bug(_request()))
    with pytest.raises(InvalidActionError):
        asyncio.run(service.apply_action(bug.id, "close"))


# ===================================================================
# Delete
# ===================================================================
def test_delete_existing_bug(service, repo):
    keep = asyncio.run(service.create_bug(_request()))
    drop = asyncio.run(service.create_bug(_request()))

    asyncio.run(service.delete_bug(drop.id))

    remaining = asyncio.run(service.list_bugs())
    assert [b.id for b in remaining] == [keep.id]


def test_delete_missing_bug_leaves_collection_unchanged(service, repo):
    asyncio.run(service.create_bug(_request()))
    with pytest.raises(BugNotFoundError):
        asyncio.run(service.delete_bug("missing"))
    assert len(repo) == 1
