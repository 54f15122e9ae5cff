from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from .framework import Stage


class AssessmentLevel(str, Enum):
    SCHOOL = "school"
    DISTRICT = "district"
    NATIONAL = "national"


class AssessmentStatus(str, Enum):
    DRAFT = "draft"
    COMPLETED = "completed"
    APPROVED = "approved"
    ARCHIVED = "archived"

    @property
    def rank(self) -> int:
        return list(AssessmentStatus).index(self)


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


@dataclass(slots=True)
class SubTheme:
    code: str
    name: str
    description: str
    score: float = 25.0  # 0..100, continuous
    stage: Stage = Stage.LATENT
    evidence: list[str] = field(default_factory=list)
    notes: str | None = None
    last_assessed: datetime | None = None


@dataclass(slots=True)
class Theme:
    code: str
    name: str
    description: str
    sub_themes: list[SubTheme] = field(default_factory=list)
    overall_score: int = 0
    stage: Stage = Stage.LATENT

    def get_sub_theme(self, code: str) -> SubTheme | None:
        for sub_theme in self.sub_themes:
            if sub_theme.code == code:
                return sub_theme
        return None


@dataclass(slots=True)
class CrossCuttingTheme:
    code: str
    name: str
    description: str
    score: float = 25.0
    stage: Stage = Stage.LATENT
    evidence: list[str] = field(default_factory=list)
    notes: str | None = None


@dataclass(slots=True)
class Assessor:
    name: str
    role: str
    email: str


@dataclass(slots=True)
class PolicyRecommendation:
    id: str
    theme_code: str
    priority: Priority
    title: str
    description: str
    action_items: list[str]
    timeline: str
    resources: list[str]
    expected_impact: str
    sub_theme_code: str | None = None


@dataclass(slots=True)
class PolicyAssessment:
    level: AssessmentLevel
    assessor: Assessor
    assessment_date: date
    themes: list[Theme] = field(default_factory=list)
    cross_cutting_themes: list[CrossCuttingTheme] = field(default_factory=list)
    overall_score: int = 0
    overall_stage: Stage = Stage.LATENT
    recommendations: list[PolicyRecommendation] = field(default_factory=list)
    status: AssessmentStatus = AssessmentStatus.DRAFT
    id: int | None = None
    school_id: str | None = None
    district_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def get_theme(self, code: str) -> Theme | None:
        for theme in self.themes:
            if theme.code == code:
                return theme
        return None

    def get_cross_cutting_theme(self, code: str) -> CrossCuttingTheme | None:
        for theme in self.cross_cutting_themes:
            if theme.code == code:
                return theme
        return None


@dataclass(slots=True)
class TrendPoint:
    date: date
    overall_score: int
    stage: Stage
    theme_scores: dict[str, int]
    assessment_id: int | None = None


@dataclass(slots=True)
class BenchmarkValue:
    average: float
    stage: Stage | None = None


@dataclass(slots=True)
class Benchmark:
    """National / regional / global reference averages for one scope."""

    national: BenchmarkValue | None = None
    regional: BenchmarkValue | None = None
    global_: BenchmarkValue | None = None


@dataclass(slots=True)
class BenchmarkSet:
    overall: Benchmark = field(default_factory=Benchmark)
    themes: dict[str, Benchmark] = field(default_factory=dict)


@dataclass(slots=True)
class BenchmarkComparison:
    code: str
    name: str
    score: int
    stage: Stage
    national: float
    regional: float
    global_: float


class UserRole(str, Enum):
    SUPER_ADMIN = "super_admin"  # full system access
    MINISTRY_ADMIN = "ministry_admin"  # Ministry of Education officials
    DISTRICT_ADMIN = "district_admin"  # District Education Officers
    SCHOOL_ADMIN = "school_admin"  # head teachers / principals
    ICT_COORDINATOR = "ict_coordinator"  # school ICT coordinators
    DATA_ANALYST = "data_analyst"  # read-only analysis
    OBSERVER = "observer"  # external observers


@dataclass(slots=True)
class User:
    id: int
    email: str
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime
    district: str | None = None
    sub_county: str | None = None
    school_id: str | None = None
    last_login: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
