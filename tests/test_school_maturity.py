"""
Tests for school-level policy maturity and ICT readiness.
"""

from __future__ import annotations

from datetime import date

import pytest

from ict_observatory.application import api as app_api
from ict_observatory.domain.framework import Stage
from ict_observatory.domain.school_maturity import (
    Governance,
    ICTReport,
    ReadinessLevel,
    SchoolProfile,
    build_school_profile,
    calculate_data_completeness,
    calculate_ict_readiness,
    calculate_school_policy_maturity,
    calculate_summary_stats,
    latest_report,
    readiness_level_for_maturity,
)
from ict_observatory.domain.scoring import score_to_stage
from ict_observatory.infrastructure.exceptions import ValidationError

WELL_EQUIPPED = {
    "id": "SCH001",
    "name": "Greenhill Primary",
    "district": "Kampala",
    "environment": "Urban",
    "infrastructure": {
        "has_electricity": True,
        "power_backup": ["Solar"],
        "has_computer_lab": True,
    },
    "internet": {"connection_type": "Fibre", "has_usage_policy": True},
    "software": {"has_lms": True, "has_digital_library": True, "has_local_content": True},
    "human_capacity": {
        "total_teachers": 20,
        "ict_trained_teachers": 18,
        "support_staff": 2,
        "monthly_trainings": 2,
        "teacher_competency_level": "Advanced",
        "has_capacity_building": True,
    },
    "pedagogical_usage": {
        "uses_ict_assessments": True,
        "uses_blended_learning": True,
        "has_digital_content": True,
        "digital_tool_usage_frequency": "Daily",
    },
    "governance": {
        "has_ict_policy": True,
        "aligned_with_national_strategy": True,
        "has_ict_committee": True,
        "has_ict_budget": True,
        "has_monitoring_system": True,
    },
    "community_engagement": {
        "has_parent_portal": True,
        "has_community_outreach": True,
        "has_industry_partners": True,
        "partner_organizations": ["MTN Foundation"],
    },
    "accessibility": {"is_inclusive": True, "serves_girls": True, "serves_pwds": True},
    "innovations": "Robotics club",
}

WELL_EQUIPPED_REPORT = {
    "school_id": "SCH001",
    "report_date": "2025-03-01",
    "computers": 60,
    "tablets": 20,
    "projectors": 5,
    "functional_devices": 70,
    "internet_connection": "Fast",
    "power_backup": True,
    "teachers_using_ict": 18,
    "total_teachers": 20,
    "weekly_lab_hours": 20,
    "student_digital_literacy_rate": 85,
    "educational_software": ["Scratch"],
    "ict_trained_teachers": 18,
    "support_staff": 2,
}


def make_report(**overrides) -> ICTReport:
    values = {**WELL_EQUIPPED_REPORT, "report_date": date(2025, 3, 1), **overrides}
    return ICTReport(**values)


@pytest.fixture
def equipped_school() -> SchoolProfile:
    return build_school_profile(WELL_EQUIPPED)


@pytest.fixture
def bare_school() -> SchoolProfile:
    return SchoolProfile(id="SCH009", name="Hilltop Primary", district="Gulu")


class TestSchoolPolicyMaturity:
    def test_well_equipped_school(self, equipped_school):
        maturity = calculate_school_policy_maturity(equipped_school, [make_report()])

        scores = {theme.code: theme.overall_score for theme in maturity.themes}
        assert scores == {
            "vision_planning": 75,
            "ict_infrastructure": 100,
            "teachers": 88,  # (100 + 100 + 75 + 75) / 4 = 87.5
            "skills_competencies": 88,
            "learning_resources": 100,
            "emis": 100,
            "monitoring_evaluation": 75,
            "equity_inclusion_safety": 88,
        }
        # 714 / 8 = 89.25
        assert maturity.overall_score == 89
        assert maturity.overall_stage == Stage.ADVANCED
        assert maturity.readiness_level == ReadinessLevel.HIGH
        assert maturity.data_completeness == 100
        assert maturity.latest_report_date == date(2025, 3, 1)

    def test_bare_profile_without_reports(self, bare_school):
        maturity = calculate_school_policy_maturity(bare_school)

        assert maturity.get_theme("teachers").overall_score == 31
        assert maturity.get_theme("equity_inclusion_safety").overall_score == 38
        assert maturity.get_theme("equity_inclusion_safety").stage == Stage.EMERGING
        assert maturity.overall_score == 27
        assert maturity.overall_stage == Stage.LATENT
        assert maturity.readiness_level == ReadinessLevel.LOW
        assert maturity.data_completeness == 0
        assert maturity.latest_report_date is None

    def test_stages_follow_scores(self, equipped_school, bare_school):
        for school in (equipped_school, bare_school):
            maturity = calculate_school_policy_maturity(school, [make_report()])
            for theme in maturity.themes:
                assert theme.stage == score_to_stage(theme.overall_score)
                for sub in theme.sub_themes:
                    assert sub.stage == score_to_stage(sub.score)
            for cross in maturity.cross_cutting_themes:
                assert cross.stage == score_to_stage(cross.score)

    def test_every_framework_theme_is_scored(self, bare_school):
        maturity = calculate_school_policy_maturity(bare_school)
        assert len(maturity.themes) == 8
        assert sum(len(theme.sub_themes) for theme in maturity.themes) == 21
        assert len(maturity.cross_cutting_themes) == 6

    def test_cross_cutting_scores(self, equipped_school):
        maturity = calculate_school_policy_maturity(equipped_school, [make_report()])
        scores = {c.code: c.score for c in maturity.cross_cutting_themes}
        assert scores == {
            "distance_education": 75,
            "mobiles": 75,
            "early_childhood": 50,
            "open_educational_resources": 75,
            "community_involvement": 75,
            "data_privacy": 75,
        }
        assert maturity.get_cross_cutting_theme("mobiles").stage == Stage.ESTABLISHED

    def test_device_tiers(self, bare_school):
        def infrastructure_devices(**counts):
            report = make_report(school_id=bare_school.id, **counts)
            maturity = calculate_school_policy_maturity(bare_school, [report])
            return maturity.get_theme("ict_infrastructure").get_sub_theme("2.2").score

        assert infrastructure_devices(computers=50, tablets=0, projectors=0) == 100
        assert infrastructure_devices(computers=20, tablets=5, projectors=0) == 75
        assert infrastructure_devices(computers=9, tablets=0, projectors=1) == 50
        assert infrastructure_devices(computers=9, tablets=0, projectors=0) == 25

    def test_reports_for_other_schools_are_ignored(self, bare_school):
        maturity = calculate_school_policy_maturity(bare_school, [make_report()])
        assert maturity.latest_report_date is None

    def test_readiness_bands(self):
        assert readiness_level_for_maturity(70) == ReadinessLevel.HIGH
        assert readiness_level_for_maturity(69.9) == ReadinessLevel.MEDIUM
        assert readiness_level_for_maturity(40) == ReadinessLevel.MEDIUM
        assert readiness_level_for_maturity(39) == ReadinessLevel.LOW


class TestDataCompleteness:
    def test_weighted_by_section(self, bare_school):
        bare_school.governance = Governance(
            has_ict_policy=True,
            aligned_with_national_strategy=False,
            has_ict_committee=False,
            has_ict_budget=True,
            has_monitoring_system=False,
        )
        # governance carries 10 of the 43 weighted profile fields
        assert calculate_data_completeness(bare_school) == 23

    def test_report_fields_count(self, bare_school):
        report = make_report(school_id=bare_school.id)
        # 25 of the 68 weighted fields once a full report is attached
        assert calculate_data_completeness(bare_school, report) == 37


class TestICTReadiness:
    def test_no_reports(self):
        readiness = calculate_ict_readiness([])
        assert readiness.level == ReadinessLevel.LOW
        assert readiness.score == 0

    def test_points(self):
        report = make_report(
            computers=60,
            teachers_using_ict=10,
            ict_trained_teachers=10,
            total_teachers=20,
        )
        # 9 + 10 + 5 + 5 + 2 + 9 + 8 + 5
        readiness = calculate_ict_readiness([report])
        assert readiness.score == 53
        assert readiness.level == ReadinessLevel.MEDIUM

    def test_points_are_capped(self):
        report = make_report(
            computers=500,
            weekly_lab_hours=120,
            student_digital_literacy_rate=100,
            support_staff=10,
            teachers_using_ict=0,
            ict_trained_teachers=0,
            total_teachers=0,
        )
        readiness = calculate_ict_readiness([report])
        assert readiness.score == 50

    def test_latest_report_wins(self):
        old = make_report(report_date=date(2024, 3, 1))
        new = make_report(
            report_date=date(2025, 3, 1),
            computers=0,
            internet_connection="None",
            power_backup=False,
            teachers_using_ict=0,
            weekly_lab_hours=0,
            student_digital_literacy_rate=0,
            ict_trained_teachers=0,
            support_staff=0,
        )
        assert latest_report("SCH001", [new, old]) is new
        readiness = calculate_ict_readiness([old, new])
        assert readiness.score == 0
        assert readiness.level == ReadinessLevel.LOW


class TestSummaryStats:
    def test_summary(self):
        schools = [
            SchoolProfile(id="A", name="Alpha", district="Kampala", environment="Urban"),
            SchoolProfile(id="B", name="Beta", district="Kampala"),
            SchoolProfile(id="C", name="Gamma", district="Gulu"),
        ]
        reports = [
            make_report(school_id="A", computers=60),
            make_report(school_id="B", computers=10, internet_connection="None"),
        ]
        summary = calculate_summary_stats(schools, reports)

        assert summary.total_schools == 3
        assert summary.schools_with_internet_percent == pytest.approx(100 / 3)
        assert summary.average_computers == pytest.approx(70 / 3)
        assert [s.school_id for s in summary.top_schools] == ["A", "B", "C"]
        assert summary.top_schools[-1].score == 0
        assert summary.district_distribution == {"Kampala": 2, "Gulu": 1}
        assert summary.environment_distribution == {"urban": 1, "rural": 2}

    def test_empty(self):
        summary = calculate_summary_stats([], [])
        assert summary.total_schools == 0
        assert summary.schools_with_internet_percent == 0
        assert summary.average_computers == 0
        assert summary.top_schools == []


class TestSchoolMaturityUseCases:
    def test_assess_from_plain_data(self):
        maturity = app_api.assess_school_maturity(WELL_EQUIPPED, [WELL_EQUIPPED_REPORT])
        assert maturity.overall_score == 89
        assert maturity.latest_report_date == date(2025, 3, 1)

    def test_strings_are_sanitised(self):
        school = {**WELL_EQUIPPED, "name": "<b>Greenhill</b> Primary"}
        maturity = app_api.assess_school_maturity(school)
        assert maturity.school_id == "SCH001"

    def test_teacher_counts_cannot_exceed_total(self):
        report = {**WELL_EQUIPPED_REPORT, "ict_trained_teachers": 25}
        with pytest.raises(ValidationError):
            app_api.assess_school_maturity(WELL_EQUIPPED, [report])

    def test_unknown_competency_level(self):
        school = {
            **WELL_EQUIPPED,
            "human_capacity": {"teacher_competency_level": "Expert"},
        }
        with pytest.raises(ValidationError):
            app_api.assess_school_maturity(school)

    def test_readiness_and_summary(self):
        readiness = app_api.assess_ict_readiness([WELL_EQUIPPED_REPORT])
        assert readiness.level == ReadinessLevel.HIGH

        summary = app_api.summarise_schools([WELL_EQUIPPED], [WELL_EQUIPPED_REPORT])
        assert summary.total_schools == 1
        assert summary.schools_with_internet_percent == 100
