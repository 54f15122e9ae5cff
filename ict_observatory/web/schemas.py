from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ict_observatory.domain.framework import Stage
from ict_observatory.domain.models import AssessmentLevel, AssessmentStatus, Priority, UserRole
from ict_observatory.domain.school_maturity import ReadinessLevel

StageLabel = Literal["Latent", "Emerging", "Established", "Advanced"]


class OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------- framework catalog ----------


class StageDescriptorsOut(OrmModel):
    latent: str
    emerging: str
    established: str
    advanced: str


class SubThemeDefinitionOut(OrmModel):
    code: str
    name: str
    description: str
    stages: StageDescriptorsOut


class ThemeDefinitionOut(OrmModel):
    code: str
    name: str
    description: str
    sub_themes: list[SubThemeDefinitionOut]


class CrossCuttingDefinitionOut(OrmModel):
    code: str
    name: str
    description: str
    stages: StageDescriptorsOut


class FrameworkResponse(BaseModel):
    stage_scores: dict[str, int]
    stage_colors: dict[str, str]
    themes: list[ThemeDefinitionOut]
    cross_cutting_themes: list[CrossCuttingDefinitionOut]


# ---------- assessments ----------


class SubThemeOut(OrmModel):
    code: str
    name: str
    description: str
    score: float
    stage: Stage
    evidence: list[str] = []
    notes: Optional[str] = None
    last_assessed: Optional[datetime] = None


class ThemeOut(OrmModel):
    code: str
    name: str
    description: str
    overall_score: int
    stage: Stage
    sub_themes: list[SubThemeOut]


class CrossCuttingThemeOut(OrmModel):
    code: str
    name: str
    description: str
    score: float
    stage: Stage
    evidence: list[str] = []
    notes: Optional[str] = None


class AssessorOut(OrmModel):
    name: str
    role: str
    email: str


class RecommendationOut(OrmModel):
    id: str
    theme_code: str
    sub_theme_code: Optional[str] = None
    priority: Priority
    title: str
    description: str
    action_items: list[str]
    timeline: str
    resources: list[str]
    expected_impact: str


class AssessmentSummary(OrmModel):
    id: int
    level: AssessmentLevel
    school_id: Optional[str] = None
    district_id: Optional[str] = None
    assessor: AssessorOut
    assessment_date: date
    status: AssessmentStatus
    overall_score: int
    overall_stage: Stage
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AssessmentDetail(AssessmentSummary):
    themes: list[ThemeOut]
    cross_cutting_themes: list[CrossCuttingThemeOut]
    recommendations: list[RecommendationOut]


class AssessmentCreateRequest(BaseModel):
    level: Literal["school", "district", "national"]
    assessor_name: str
    assessor_role: str
    assessor_email: str
    assessment_date: Optional[date] = None
    school_id: Optional[str] = None
    district_id: Optional[str] = None


class AssessorUpdateRequest(BaseModel):
    name: str
    role: str
    email: str


class ScoreUpdate(BaseModel):
    # 0-100 range checked by the application layer
    score: float


class StageUpdate(BaseModel):
    stage: str


class EvidenceRequest(BaseModel):
    evidence: list[str] = Field(default_factory=list)
    notes: Optional[str] = None


class StatusUpdate(BaseModel):
    status: str


# ---------- trends & benchmarks ----------


class TrendPointOut(OrmModel):
    assessment_id: Optional[int] = None
    date: date
    overall_score: int
    stage: Stage
    theme_scores: dict[str, int]


class TrendResponse(BaseModel):
    points: list[TrendPointOut]
    figure: Optional[dict[str, Any]] = None


class BenchmarkValueIn(BaseModel):
    average: float = Field(..., ge=0, le=100)
    stage: Optional[StageLabel] = None


class BenchmarkIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    national: Optional[BenchmarkValueIn] = None
    regional: Optional[BenchmarkValueIn] = None
    global_: Optional[BenchmarkValueIn] = Field(default=None, alias="global")


class BenchmarkRequest(BaseModel):
    overall: BenchmarkIn = Field(default_factory=BenchmarkIn)
    themes: dict[str, BenchmarkIn] = Field(default_factory=dict)


class BenchmarkComparisonOut(OrmModel):
    code: str
    name: str
    score: int
    stage: Stage
    national: float
    regional: float
    global_: float = Field(serialization_alias="global")


class BenchmarkResponse(BaseModel):
    overall: BenchmarkComparisonOut
    themes: list[BenchmarkComparisonOut]


# ---------- school maturity ----------


class SchoolMaturityRequest(BaseModel):
    school: dict[str, Any]
    reports: list[dict[str, Any]] = Field(default_factory=list)


class SchoolSummaryRequest(BaseModel):
    schools: list[dict[str, Any]] = Field(default_factory=list)
    reports: list[dict[str, Any]] = Field(default_factory=list)


class ReadinessRequest(BaseModel):
    reports: list[dict[str, Any]] = Field(default_factory=list)


class SchoolMaturityOut(OrmModel):
    school_id: str
    overall_score: int
    overall_stage: Stage
    readiness_level: ReadinessLevel
    themes: list[ThemeOut]
    cross_cutting_themes: list[CrossCuttingThemeOut]
    data_completeness: int
    latest_report_date: Optional[date] = None
    calculated_at: datetime


class ICTReadinessOut(OrmModel):
    level: ReadinessLevel
    score: float


class SchoolReadinessRankOut(OrmModel):
    school_id: str
    name: str
    score: float


class SchoolSummaryOut(OrmModel):
    total_schools: int
    schools_with_internet_percent: float
    average_computers: float
    top_schools: list[SchoolReadinessRankOut]
    district_distribution: dict[str, int]
    environment_distribution: dict[str, int]


# ---------- users ----------


class UserOut(OrmModel):
    id: int
    email: str
    first_name: str
    last_name: str
    full_name: str
    role: UserRole
    role_display_name: str
    district: Optional[str] = None
    sub_county: Optional[str] = None
    school_id: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserCreateRequest(BaseModel):
    email: str
    first_name: str
    last_name: str
    role: str
    password: str
    district: Optional[str] = None
    sub_county: Optional[str] = None
    school_id: Optional[str] = None


class UserUpdateRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None
    district: Optional[str] = None
    sub_county: Optional[str] = None
    school_id: Optional[str] = None
    is_active: Optional[bool] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class PasswordResetRequest(BaseModel):
    new_password: str


class RolePermissionsOut(OrmModel):
    role: str
    display_name: str
    description: str
    can_view_all_schools: bool
    can_edit_all_schools: bool
    can_delete_schools: bool
    can_view_all_reports: bool
    can_edit_all_reports: bool
    can_delete_reports: bool
    can_manage_users: bool
    can_view_analytics: bool
    can_export_data: bool
    restricted_to_district: Optional[str] = None
    restricted_to_school: Optional[str] = None


class LoginResponse(BaseModel):
    user: UserOut
    permissions: RolePermissionsOut
