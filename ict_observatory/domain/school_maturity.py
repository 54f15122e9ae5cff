"""
School-level policy maturity and ICT readiness.

A school profile plus its periodic ICT reports are projected onto the same
eight-theme framework used by policy assessments: every sub-theme and
cross-cutting theme gets an anchor-like score from observable facts (devices,
trained teachers, governance arrangements and so on), and the usual aggregation
produces theme and overall stages. The overall score also maps to a coarse
readiness level. A separate points-based readiness score is computed from the
latest report alone, and ``calculate_summary_stats`` rolls both up across schools.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Literal

from .framework import CROSS_CUTTING_THEMES, POLICY_THEMES, Stage
from .models import CrossCuttingTheme, SubTheme, Theme
from .scoring import mean_score, round_half_up, score_to_stage

CompetencyLevel = Literal["Basic", "Intermediate", "Advanced"]
UsageFrequency = Literal["Daily", "Weekly", "Rarely", "Never"]
InternetQuality = Literal["None", "Slow", "Medium", "Fast"]


class ReadinessLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# ---------- inputs ----------


@dataclass(slots=True)
class SchoolInfrastructure:
    has_electricity: bool | None = None
    power_backup: list[str] = field(default_factory=list)
    has_computer_lab: bool | None = None


@dataclass(slots=True)
class SchoolInternet:
    connection_type: str | None = None
    has_usage_policy: bool | None = None


@dataclass(slots=True)
class SchoolSoftware:
    has_lms: bool | None = None
    has_digital_library: bool | None = None
    has_local_content: bool | None = None


@dataclass(slots=True)
class HumanCapacity:
    total_teachers: int | None = None
    ict_trained_teachers: int | None = None
    support_staff: int | None = None
    monthly_trainings: int | None = None
    teacher_competency_level: CompetencyLevel | None = None
    has_capacity_building: bool | None = None


@dataclass(slots=True)
class PedagogicalUsage:
    uses_ict_assessments: bool | None = None
    uses_blended_learning: bool | None = None
    has_digital_content: bool | None = None
    digital_tool_usage_frequency: UsageFrequency | None = None


@dataclass(slots=True)
class Governance:
    has_ict_policy: bool | None = None
    aligned_with_national_strategy: bool | None = None
    has_ict_committee: bool | None = None
    has_ict_budget: bool | None = None
    has_monitoring_system: bool | None = None


@dataclass(slots=True)
class CommunityEngagement:
    has_parent_portal: bool | None = None
    has_community_outreach: bool | None = None
    has_industry_partners: bool | None = None
    partner_organizations: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Accessibility:
    is_inclusive: bool | None = None
    serves_girls: bool | None = None
    serves_pwds: bool | None = None


@dataclass(slots=True)
class SchoolProfile:
    id: str
    name: str
    district: str
    environment: Literal["Urban", "Rural"] = "Rural"
    infrastructure: SchoolInfrastructure = field(default_factory=SchoolInfrastructure)
    internet: SchoolInternet = field(default_factory=SchoolInternet)
    software: SchoolSoftware = field(default_factory=SchoolSoftware)
    human_capacity: HumanCapacity = field(default_factory=HumanCapacity)
    pedagogical_usage: PedagogicalUsage = field(default_factory=PedagogicalUsage)
    governance: Governance = field(default_factory=Governance)
    community_engagement: CommunityEngagement = field(default_factory=CommunityEngagement)
    accessibility: Accessibility = field(default_factory=Accessibility)
    innovations: str | None = None


@dataclass(slots=True)
class ICTReport:
    """One periodic ICT survey return for a school."""

    school_id: str
    report_date: date
    computers: int = 0
    tablets: int = 0
    projectors: int = 0
    functional_devices: int = 0
    internet_connection: InternetQuality = "None"
    power_backup: bool = False
    teachers_using_ict: int = 0
    total_teachers: int = 0
    weekly_lab_hours: float = 0
    student_digital_literacy_rate: float = 0
    educational_software: list[str] = field(default_factory=list)
    ict_trained_teachers: int = 0
    support_staff: int = 0


_SECTION_TYPES: Mapping[str, type] = MappingProxyType(
    {
        "infrastructure": SchoolInfrastructure,
        "internet": SchoolInternet,
        "software": SchoolSoftware,
        "human_capacity": HumanCapacity,
        "pedagogical_usage": PedagogicalUsage,
        "governance": Governance,
        "community_engagement": CommunityEngagement,
        "accessibility": Accessibility,
    }
)


def build_school_profile(data: Mapping[str, Any]) -> SchoolProfile:
    """Build a profile from plain (already validated) data; missing sections stay unknown."""
    values = dict(data)
    for name, section_type in _SECTION_TYPES.items():
        values[name] = section_type(**(values.get(name) or {}))
    return SchoolProfile(**values)


def build_ict_report(data: Mapping[str, Any]) -> ICTReport:
    return ICTReport(**data)


# ---------- outputs ----------


@dataclass(slots=True)
class SchoolPolicyMaturity:
    school_id: str
    overall_score: int
    overall_stage: Stage
    readiness_level: ReadinessLevel
    themes: list[Theme]
    cross_cutting_themes: list[CrossCuttingTheme]
    data_completeness: int
    latest_report_date: date | None = None
    calculated_at: datetime = field(default_factory=datetime.utcnow)

    def get_theme(self, code: str) -> Theme | None:
        return next((t for t in self.themes if t.code == code), None)

    def get_cross_cutting_theme(self, code: str) -> CrossCuttingTheme | None:
        return next((c for c in self.cross_cutting_themes if c.code == code), None)


@dataclass(slots=True)
class ICTReadiness:
    level: ReadinessLevel
    score: float


@dataclass(slots=True)
class SchoolReadinessRank:
    school_id: str
    name: str
    score: float


@dataclass(slots=True)
class SchoolSummary:
    total_schools: int
    schools_with_internet_percent: float
    average_computers: float
    top_schools: list[SchoolReadinessRank]
    district_distribution: dict[str, int]
    environment_distribution: dict[str, int]


# ---------- readiness ----------


def readiness_level_for_maturity(score: float) -> ReadinessLevel:
    """Readiness band for an overall maturity score: 70+ High, 40+ Medium."""
    if score >= 70:
        return ReadinessLevel.HIGH
    if score >= 40:
        return ReadinessLevel.MEDIUM
    return ReadinessLevel.LOW


def latest_report(school_id: str, reports: Iterable[ICTReport]) -> ICTReport | None:
    """Most recent report for the school; the first one wins on equal dates."""
    latest: ICTReport | None = None
    for report in reports:
        if report.school_id != school_id:
            continue
        if latest is None or report.report_date > latest.report_date:
            latest = report
    return latest


def _ratio(part: float, whole: float) -> float:
    return part / whole if whole > 0 else 0.0


INTERNET_POINTS = MappingProxyType({"Fast": 10, "Medium": 7, "Slow": 3, "None": 0})


def calculate_ict_readiness(reports: Sequence[ICTReport]) -> ICTReadiness:
    """
    Points-based readiness (0..100) from the most recent report.

    Infrastructure gives up to 30 points (computers 15, internet 10, power backup 5),
    usage up to 25 (teachers using ICT 10, lab hours 5, student literacy 10) and
    capacity up to 20 (trained teachers 15, support staff 5). Below 30 is Low,
    below 60 Medium.
    """
    if not reports:
        return ICTReadiness(ReadinessLevel.LOW, 0)

    report = max(reports, key=lambda r: r.report_date)
    teachers = report.total_teachers

    score: float = 0
    score += min(15, round_half_up(report.computers / 100 * 15))
    score += INTERNET_POINTS.get(report.internet_connection, 0)
    score += 5 if report.power_backup else 0
    score += min(10, round_half_up(_ratio(report.teachers_using_ict, teachers) * 10))
    score += min(5, round_half_up(report.weekly_lab_hours / 10))
    score += min(10, round_half_up(report.student_digital_literacy_rate / 10))
    score += min(15, round_half_up(_ratio(report.ict_trained_teachers, teachers) * 15))
    score += min(5, report.support_staff * 2.5)

    if score < 30:
        level = ReadinessLevel.LOW
    elif score < 60:
        level = ReadinessLevel.MEDIUM
    else:
        level = ReadinessLevel.HIGH
    return ICTReadiness(level, score)


# ---------- sub-theme rules ----------

Rule = Callable[[SchoolProfile, "ICTReport | None"], int]


def _tiered(value: float, tiers: Sequence[tuple[float, int]], default: int = 25) -> int:
    for minimum, score in tiers:
        if value >= minimum:
            return score
    return default


def _first(*pairs: tuple[Any, int], default: int = 25) -> int:
    for condition, score in pairs:
        if condition:
            return score
    return default


def _training_rate(school: SchoolProfile, report: ICTReport | None) -> float:
    capacity = school.human_capacity
    total = (report.total_teachers if report else 0) or capacity.total_teachers or 1
    trained = (report.ict_trained_teachers if report else 0) or capacity.ict_trained_teachers or 0
    return trained / total * 100


def _devices(report: ICTReport | None) -> int:
    if report is None:
        return 0
    return report.computers + report.tablets + report.projectors


def _support_staff(report: ICTReport | None) -> int:
    return report.support_staff if report else 0


def _pro_equity(school: SchoolProfile) -> int:
    flags = [
        bool(school.accessibility.is_inclusive),
        bool(school.accessibility.serves_pwds),
        bool(school.accessibility.serves_girls),
    ]
    if all(flags):
        return 100
    return 75 if any(flags) else 50


COMPETENCY_SCORES = MappingProxyType({"Advanced": 100, "Intermediate": 75, "Basic": 50})

SUB_THEME_RULES: Mapping[str, Rule] = MappingProxyType(
    {
        # vision and planning
        "1.1": lambda s, r: _first(
            (s.governance.has_ict_policy, 75), (s.governance.aligned_with_national_strategy, 50)
        ),
        "1.2": lambda s, r: _first(
            (s.governance.aligned_with_national_strategy, 75), (s.governance.has_ict_committee, 50)
        ),
        "1.3": lambda s, r: _first(
            (s.governance.has_ict_budget, 75), (r is not None and r.functional_devices > 10, 50)
        ),
        "1.4": lambda s, r: _first(
            (s.governance.has_ict_committee, 75), (_support_staff(r) > 0, 50)
        ),
        "1.5": lambda s, r: _first(
            (s.community_engagement.has_industry_partners, 75),
            (s.community_engagement.partner_organizations, 50),
        ),
        # infrastructure
        "2.1": lambda s, r: (
            (100 if s.infrastructure.power_backup else 75)
            if s.infrastructure.has_electricity
            else 25
        ),
        "2.2": lambda s, r: _tiered(_devices(r), [(50, 100), (25, 75), (10, 50)]),
        "2.3": lambda s, r: _tiered(_support_staff(r), [(2, 100), (1, 75)]),
        # teachers
        "3.1": lambda s, r: _tiered(_training_rate(s, r), [(80, 100), (60, 75), (30, 50)]),
        "3.2": lambda s, r: COMPETENCY_SCORES.get(s.human_capacity.teacher_competency_level, 25),
        "3.3": lambda s, r: _first(
            (s.human_capacity.has_capacity_building, 75), (s.human_capacity.monthly_trainings, 50)
        ),
        "3.4": lambda s, r: 75 if s.governance.has_ict_committee else 50,
        # skills and competencies
        "4.1": lambda s, r: _tiered(
            r.student_digital_literacy_rate if r else 0, [(80, 100), (60, 75), (30, 50)]
        ),
        "4.2": lambda s, r: _first(
            (s.pedagogical_usage.uses_blended_learning, 75),
            (s.pedagogical_usage.has_digital_content, 50),
        ),
        # learning resources
        "5.1": lambda s, r: _first(
            (s.software.has_digital_library and s.software.has_local_content, 100),
            (r is not None and r.educational_software, 75),
            (s.software.has_digital_library or s.software.has_local_content, 50),
        ),
        # EMIS
        "6.1": lambda s, r: _first(
            (s.software.has_lms and s.governance.has_monitoring_system, 100),
            (s.software.has_lms or s.governance.has_monitoring_system, 75),
            (s.pedagogical_usage.uses_ict_assessments, 50),
        ),
        # monitoring and evaluation
        "7.1": lambda s, r: 75 if s.governance.has_monitoring_system else 25,
        "7.2": lambda s, r: 75 if s.pedagogical_usage.uses_ict_assessments else 25,
        "7.3": lambda s, r: 75 if s.innovations else 25,
        # equity, inclusion and safety
        "8.1": lambda s, r: _pro_equity(s),
        "8.2": lambda s, r: 75 if s.internet.has_usage_policy else 25,
    }
)

CROSS_CUTTING_RULES: Mapping[str, Rule] = MappingProxyType(
    {
        "distance_education": lambda s, r: _first(
            (s.pedagogical_usage.uses_blended_learning, 75), (s.software.has_lms, 50)
        ),
        "mobiles": lambda s, r: {"Daily": 75, "Weekly": 50}.get(
            s.pedagogical_usage.digital_tool_usage_frequency or "", 25
        ),
        # Primary schools have no early-childhood programme data to score from.
        "early_childhood": lambda s, r: 50,
        "open_educational_resources": lambda s, r: _first(
            (s.software.has_local_content, 75), (s.software.has_digital_library, 50)
        ),
        "community_involvement": lambda s, r: _first(
            (s.community_engagement.has_parent_portal, 75),
            (s.community_engagement.has_community_outreach, 50),
        ),
        "data_privacy": lambda s, r: 75 if s.internet.has_usage_policy else 25,
    }
)


# ---------- completeness ----------

SCHOOL_SECTION_WEIGHTS = MappingProxyType(
    {
        "infrastructure": 2,
        "internet": 2,
        "software": 1,
        "human_capacity": 2,
        "pedagogical_usage": 1,
        "governance": 2,
        "community_engagement": 1,
    }
)

REPORT_FIELD_WEIGHTS = MappingProxyType(
    {
        "computers": 2,
        "tablets": 2,
        "projectors": 2,
        "functional_devices": 2,
        "internet_connection": 2,
        "power_backup": 2,
        "teachers_using_ict": 2,
        "total_teachers": 2,
        "weekly_lab_hours": 2,
        "student_digital_literacy_rate": 2,
        "educational_software": 1,
        "ict_trained_teachers": 2,
        "support_staff": 2,
    }
)


def _is_filled(value: Any) -> bool:
    return value is not None and value != "" and value != []


def calculate_data_completeness(school: SchoolProfile, report: ICTReport | None = None) -> int:
    """Weighted percentage of profile (and latest report) fields that carry a value."""
    total = 0
    filled = 0
    for section_name, weight in SCHOOL_SECTION_WEIGHTS.items():
        section = getattr(school, section_name)
        for f in fields(section):
            total += weight
            filled += weight if _is_filled(getattr(section, f.name)) else 0
    if report is not None:
        for name, weight in REPORT_FIELD_WEIGHTS.items():
            total += weight
            filled += weight if _is_filled(getattr(report, name)) else 0
    return round_half_up(filled / total * 100) if total else 0


# ---------- maturity ----------


def calculate_school_policy_maturity(
    school: SchoolProfile, reports: Iterable[ICTReport] = ()
) -> SchoolPolicyMaturity:
    """
    Score a school against the policy framework using its profile and latest report.

    Theme and overall scores use the same rounded means and stage thresholds as
    policy assessments, so a school's stages are directly comparable with them.
    """
    report = latest_report(school.id, reports)

    themes = []
    for definition in POLICY_THEMES:
        sub_themes = []
        for sub in definition.sub_themes:
            score = float(SUB_THEME_RULES[sub.code](school, report))
            sub_themes.append(
                SubTheme(
                    code=sub.code,
                    name=sub.name,
                    description=sub.description,
                    score=score,
                    stage=score_to_stage(score),
                )
            )
        theme = Theme(
            code=definition.code,
            name=definition.name,
            description=definition.description,
            sub_themes=sub_themes,
        )
        theme.overall_score = mean_score(s.score for s in sub_themes)
        theme.stage = score_to_stage(theme.overall_score)
        themes.append(theme)

    cross_cutting = []
    for definition in CROSS_CUTTING_THEMES:
        score = float(CROSS_CUTTING_RULES[definition.code](school, report))
        cross_cutting.append(
            CrossCuttingTheme(
                code=definition.code,
                name=definition.name,
                description=definition.description,
                score=score,
                stage=score_to_stage(score),
            )
        )

    overall = mean_score(theme.overall_score for theme in themes)
    return SchoolPolicyMaturity(
        school_id=school.id,
        overall_score=overall,
        overall_stage=score_to_stage(overall),
        readiness_level=readiness_level_for_maturity(overall),
        themes=themes,
        cross_cutting_themes=cross_cutting,
        data_completeness=calculate_data_completeness(school, report),
        latest_report_date=report.report_date if report else None,
    )


def calculate_summary_stats(
    schools: Sequence[SchoolProfile], reports: Sequence[ICTReport], top: int = 5
) -> SchoolSummary:
    """Connectivity, device and readiness roll-up across a set of schools."""
    with_internet = 0
    computers = 0
    ranks: list[SchoolReadinessRank] = []

    for school in schools:
        report = latest_report(school.id, reports)
        if report is not None:
            computers += report.computers
            if report.internet_connection != "None":
                with_internet += 1
        readiness = calculate_ict_readiness([r for r in reports if r.school_id == school.id])
        ranks.append(SchoolReadinessRank(school.id, school.name, readiness.score))

    total = len(schools)
    environments = Counter(s.environment.lower() for s in schools)
    return SchoolSummary(
        total_schools=total,
        schools_with_internet_percent=with_internet / total * 100 if total else 0.0,
        average_computers=computers / total if total else 0.0,
        top_schools=sorted(ranks, key=lambda rank: rank.score, reverse=True)[:top],
        district_distribution=dict(Counter(s.district for s in schools)),
        environment_distribution={
            "urban": environments.get("urban", 0),
            "rural": environments.get("rural", 0),
        },
    )
