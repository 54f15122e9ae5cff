from __future__ import annotations

import json
from datetime import date, datetime

from ict_observatory.domain.framework import STAGE_COLORS, Stage
from ict_observatory.domain.models import TrendPoint, User, UserRole
from ict_observatory.domain.services import ScoringService
from ict_observatory.utils.charts import (
    figure_to_payload,
    gradient_color,
    hex_to_rgb,
    make_theme_radar,
    make_trend_figure,
    rgb_to_hex,
    stage_color,
)
from ict_observatory.utils.exports import (
    USER_COLUMNS,
    assessment_to_dict,
    assessments_summary_dataframe,
    make_assessment_json_export,
    make_sub_theme_scores_frame,
    users_dataframe,
)


def _user(**overrides) -> User:
    fields = dict(
        id=3,
        email="head@greenhill.ug",
        first_name="Sarah",
        last_name="Nakato",
        role=UserRole.SCHOOL_ADMIN,
        is_active=True,
        created_at=datetime(2024, 1, 2, 9, 30),
        updated_at=datetime(2024, 1, 2, 9, 30),
        district="Kampala",
        school_id="SCH001",
        last_login=datetime(2024, 5, 6, 8, 0),
    )
    fields.update(overrides)
    return User(**fields)


class TestUserExport:
    def test_columns_and_formatting(self):
        frame = users_dataframe([_user()])
        assert list(frame.columns) == USER_COLUMNS
        row = frame.iloc[0].to_dict()
        assert row == {
            "Name": "Sarah Nakato",
            "Email": "head@greenhill.ug",
            "Role": "School Administrator",
            "District": "Kampala",
            "School": "SCH001",
            "Status": "Active",
            "Last Login": "2024-05-06",
            "Created": "2024-01-02",
        }

    def test_fallbacks(self):
        row = users_dataframe(
            [_user(district=None, school_id=None, last_login=None, is_active=False)]
        ).iloc[0]
        assert row["District"] == "N/A"
        assert row["School"] == "N/A"
        assert row["Last Login"] == "Never"
        assert row["Status"] == "Inactive"

    def test_empty(self):
        assert list(users_dataframe([]).columns) == USER_COLUMNS


class TestAssessmentExport:
    def test_summary_has_theme_columns(self, assessment):
        assessment.id = 11
        frame = assessments_summary_dataframe([assessment])
        assert frame.loc[0, "AssessmentID"] == 11
        assert frame.loc[0, "Level"] == "school"
        assert frame.loc[0, "OverallStage"] == "Latent"
        assert list(frame.columns)[-8:] == [t.code for t in assessment.themes]

    def test_json_export_is_plain_values(self, assessment):
        ScoringService().set_sub_theme_score(assessment, "emis", "6.1", 90)
        payload = json.loads(make_assessment_json_export(assessment))
        assert payload["level"] == "school"
        assert payload["assessment_date"] == assessment.assessment_date.isoformat()
        emis = next(t for t in payload["themes"] if t["code"] == "emis")
        assert emis["sub_themes"][0]["score"] == 90
        assert emis["stage"] == "Advanced"
        assert payload["recommendations"][0]["priority"] == "high"

    def test_dict_matches_json(self, assessment):
        assert json.loads(make_assessment_json_export(assessment)) == assessment_to_dict(
            assessment
        )

    def test_sub_theme_frame(self, assessment):
        ScoringService().add_sub_theme_evidence(assessment, "teachers", "3.1", ["A", "B"])
        frame = make_sub_theme_scores_frame(assessment)
        assert len(frame) == sum(len(t.sub_themes) for t in assessment.themes)
        training = frame[frame["SubThemeCode"] == "3.1"].iloc[0]
        assert training["Evidence"] == "A; B"
        assert training["Stage"] == "Latent"


class TestColours:
    def test_hex_round_trip(self):
        assert rgb_to_hex(hex_to_rgb("#3B82F6")) == "#3B82F6"

    def test_gradient_clamps_and_hits_stops(self):
        assert gradient_color(0) == STAGE_COLORS[Stage.LATENT]
        assert gradient_color(75) == STAGE_COLORS[Stage.ESTABLISHED]
        assert gradient_color(120) == STAGE_COLORS[Stage.ADVANCED]

    def test_stage_color_uses_thresholds(self):
        assert stage_color(62.5) == STAGE_COLORS[Stage.ESTABLISHED]
        assert stage_color(62.4) == STAGE_COLORS[Stage.EMERGING]


class TestFigures:
    def _points(self):
        return [
            TrendPoint(date(2024, 1, 1), 25, Stage.LATENT, {"emis": 25, "teachers": 30}),
            TrendPoint(date(2024, 2, 1), 50, Stage.EMERGING, {"emis": 50, "teachers": 45}),
        ]

    def test_trend_figure_traces(self):
        fig = make_trend_figure(self._points())
        names = [trace.name for trace in fig.data]
        assert names == ["EMIS (Education Management Information Systems)", "Teachers", "Overall"]
        assert list(fig.data[-1].x) == ["2024-01-01", "2024-02-01"]
        assert len(fig.layout.shapes) == 4

    def test_trend_figure_overall_only(self):
        fig = make_trend_figure(self._points(), include_themes=False)
        assert [trace.name for trace in fig.data] == ["Overall"]

    def test_radar_closes_the_loop(self, assessment):
        fig = make_theme_radar(assessment)
        trace = fig.data[0]
        assert len(trace.theta) == len(assessment.themes) + 1
        assert trace.theta[0] == trace.theta[-1]

    def test_payload_is_json_safe(self, assessment):
        payload = figure_to_payload(make_theme_radar(assessment))
        json.dumps(payload)
        assert payload["layout"]["title"]["text"] == "Overall 25 (Latent)"
