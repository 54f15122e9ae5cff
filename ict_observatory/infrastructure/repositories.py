"""
Repository entry point.

Re-exports the split repositories so callers import from one place:

    from ict_observatory.infrastructure.repositories import AssessmentRepo, UserRepo
"""

from __future__ import annotations

from .repositories_assessment import AssessmentRepo, assessment_to_domain  # re-export
from .repositories_user import UserRepo, user_to_domain  # re-export

__all__ = [
    "AssessmentRepo",
    "UserRepo",
    "assessment_to_domain",
    "user_to_domain",
]
