"""
API dependencies.
Builds the process-wide BugService once; tests swap it via app.dependency_overrides.
"""
from functools import lru_cache

from app.services.bug_repository import build_repository
from app.services.bug_service import BugService


@lru_cache(maxsize=1)
def get_bug_service() -> BugService:
    return BugService(build_repository())
