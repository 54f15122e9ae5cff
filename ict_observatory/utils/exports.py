from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import asdict
from datetime import datetime
from enum import Enum

import pandas as pd

from ..domain.models import PolicyAssessment, User
from ..domain.permissions import get_role_display_name

USER_COLUMNS = ["Name", "Email", "Role", "District", "School", "Status", "Last Login", "Created"]


def _to_iso(val):
    if isinstance(val, Enum):
        return val.value
    if hasattr(val, "isoformat"):
        return val.isoformat()
    return val


def _format_day(value: datetime | None, default: str) -> str:
    return value.strftime("%Y-%m-%d") if value else default


def users_dataframe(users: Sequence[User]) -> pd.DataFrame:
    rows = [
        {
            "Name": user.full_name,
            "Email": user.email,
            "Role": get_role_display_name(user.role),
            "District": user.district or "N/A",
            "School": user.school_id or "N/A",
            "Status": "Active" if user.is_active else "Inactive",
            "Last Login": _format_day(user.last_login, "Never"),
            "Created": _format_day(user.created_at, ""),
        }
        for user in users
    ]
    return pd.DataFrame(rows, columns=USER_COLUMNS)


def users_to_csv(users: Sequence[User]) -> str:
    return users_dataframe(users).to_csv(index=False)


def assessments_summary_dataframe(assessments: Sequence[PolicyAssessment]) -> pd.DataFrame:
    """One row per assessment: header fields, overall result, then one column per theme."""
    header = [
        "AssessmentID",
        "Date",
        "Level",
        "School",
        "District",
        "Status",
        "Assessor",
        "OverallScore",
        "OverallStage",
    ]
    theme_codes: list[str] = []
    rows = []
    for assessment in assessments:
        row = {
            "AssessmentID": assessment.id,
            "Date": assessment.assessment_date.isoformat(),
            "Level": _to_iso(assessment.level),
            "School": assessment.school_id,
            "District": assessment.district_id,
            "Status": _to_iso(assessment.status),
            "Assessor": assessment.assessor.name,
            "OverallScore": assessment.overall_score,
            "OverallStage": _to_iso(assessment.overall_stage),
        }
        for theme in assessment.themes:
            if theme.code not in theme_codes:
                theme_codes.append(theme.code)
            row[theme.code] = theme.overall_score
        rows.append(row)
    return pd.DataFrame(rows, columns=header + theme_codes)


def assessments_summary_to_csv(assessments: Sequence[PolicyAssessment]) -> str:
    return assessments_summary_dataframe(assessments).to_csv(index=False)


def assessment_to_dict(assessment: PolicyAssessment) -> dict:
    def convert(value):
        if isinstance(value, dict):
            return {k: convert(v) for k, v in value.items()}
        if isinstance(value, list):
            return [convert(v) for v in value]
        return _to_iso(value)

    return convert(asdict(assessment))


def make_assessment_json_export(assessment: PolicyAssessment) -> str:
    return json.dumps(assessment_to_dict(assessment), indent=2)


def make_sub_theme_scores_frame(assessment: PolicyAssessment) -> pd.DataFrame:
    """Flat sub-theme table, used for the per-assessment CSV download."""
    records = [
        {
            "Theme": theme.name,
            "ThemeCode": theme.code,
            "SubTheme": sub.name,
            "SubThemeCode": sub.code,
            "Score": sub.score,
            "Stage": _to_iso(sub.stage),
            "Evidence": "; ".join(sub.evidence),
            "Notes": sub.notes or "",
        }
        for theme in assessment.themes
        for sub in theme.sub_themes
    ]
    return pd.DataFrame(
        records,
        columns=["Theme", "ThemeCode", "SubTheme", "SubThemeCode", "Score", "Stage", "Evidence", "Notes"],
    )
