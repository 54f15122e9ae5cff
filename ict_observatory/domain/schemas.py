"""
Pydantic schemas for input validation across the application.

These schemas validate everything that reaches the scoring core or the user
directory from the outside: assessment headers, score edits, workflow status
changes, user account data, and the school profiles and ICT reports scored
by the school maturity model.
"""

from __future__ import annotations

import re
from datetime import date
from html import unescape
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from .models import UserRole

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
UNSANITISED_FIELDS = {"password", "new_password"}

StageLabel = Literal["Latent", "Emerging", "Established", "Advanced"]
LevelLabel = Literal["school", "district", "national"]
StatusLabel = Literal["draft", "completed", "approved", "archived"]


class BaseValidationSchema(BaseModel):
    """Base schema with common validation utilities."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        use_enum_values=True,
    )

    @field_validator("*", mode="before")
    @classmethod
    def sanitize_strings(cls, v: Any, info: ValidationInfo) -> Any:
        """Strip markup and control characters from free-text inputs."""
        if isinstance(v, str) and info.field_name not in UNSANITISED_FIELDS:
            cleaned = unescape(v.strip())
            cleaned = re.sub(
                r"<\s*script[^>]*>.*?<\s*/\s*script\s*>",
                "",
                cleaned,
                flags=re.IGNORECASE | re.DOTALL,
            )
            cleaned = re.sub(r"<[^>]+>", "", cleaned)
            cleaned = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]", "", cleaned)
            return cleaned
        return v


def _check_email(value: str) -> str:
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Please enter a valid email address")
    return value.lower()


class AssessorInput(BaseValidationSchema):
    """Assessor identity required before an assessment can be submitted."""

    name: str = Field(..., min_length=1, max_length=255)
    role: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class AssessmentCreationInput(BaseValidationSchema):
    """Validation schema for starting a new policy assessment."""

    level: LevelLabel
    assessor_name: str = Field(..., min_length=1, max_length=255)
    assessor_role: str = Field(..., min_length=1, max_length=255)
    assessor_email: str = Field(..., min_length=3, max_length=255)
    assessment_date: date | None = None
    school_id: str | None = Field(None, max_length=64)
    district_id: str | None = Field(None, max_length=64)

    @field_validator("assessor_email")
    @classmethod
    def validate_assessor_email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("school_id", "district_id")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v


class ScoreInput(BaseValidationSchema):
    score: float = Field(..., ge=0, le=100, description="Continuous score between 0-100")


class StageInput(BaseValidationSchema):
    stage: StageLabel


class EvidenceInput(BaseValidationSchema):
    evidence: list[str] = Field(default_factory=list, max_length=50)
    notes: str | None = Field(None, max_length=5000)

    @field_validator("evidence", mode="after")
    @classmethod
    def drop_empty_items(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item and item.strip()]


class StatusInput(BaseValidationSchema):
    status: StatusLabel


class UserCreateInput(BaseValidationSchema):
    """Validation schema for creating user accounts."""

    email: str = Field(..., min_length=3, max_length=255)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: UserRole
    district: str | None = Field(None, max_length=100)
    sub_county: str | None = Field(None, max_length=100)
    school_id: str | None = Field(None, max_length=64)
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def validate_user_email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v: str) -> str:
        if re.search(r'[<>"\\/]', v):
            raise ValueError("Name contains invalid characters")
        return v


class UserUpdateInput(BaseValidationSchema):
    """Partial update; only the supplied fields are applied."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    role: UserRole | None = None
    district: str | None = Field(None, max_length=100)
    sub_county: str | None = Field(None, max_length=100)
    school_id: str | None = Field(None, max_length=64)
    is_active: bool | None = None


class LoginInput(BaseValidationSchema):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.lower()


class PasswordResetInput(BaseValidationSchema):
    new_password: str = Field(..., min_length=8, max_length=128)


# ---------- school profiles and ICT reports ----------


class InfrastructureInput(BaseValidationSchema):
    has_electricity: bool | None = None
    power_backup: list[str] = Field(default_factory=list, max_length=10)
    has_computer_lab: bool | None = None


class InternetInput(BaseValidationSchema):
    connection_type: str | None = Field(None, max_length=50)
    has_usage_policy: bool | None = None


class SoftwareInput(BaseValidationSchema):
    has_lms: bool | None = None
    has_digital_library: bool | None = None
    has_local_content: bool | None = None


class HumanCapacityInput(BaseValidationSchema):
    total_teachers: int | None = Field(None, ge=0)
    ict_trained_teachers: int | None = Field(None, ge=0)
    support_staff: int | None = Field(None, ge=0)
    monthly_trainings: int | None = Field(None, ge=0)
    teacher_competency_level: Literal["Basic", "Intermediate", "Advanced"] | None = None
    has_capacity_building: bool | None = None


class PedagogicalUsageInput(BaseValidationSchema):
    uses_ict_assessments: bool | None = None
    uses_blended_learning: bool | None = None
    has_digital_content: bool | None = None
    digital_tool_usage_frequency: Literal["Daily", "Weekly", "Rarely", "Never"] | None = None


class GovernanceInput(BaseValidationSchema):
    has_ict_policy: bool | None = None
    aligned_with_national_strategy: bool | None = None
    has_ict_committee: bool | None = None
    has_ict_budget: bool | None = None
    has_monitoring_system: bool | None = None


class CommunityEngagementInput(BaseValidationSchema):
    has_parent_portal: bool | None = None
    has_community_outreach: bool | None = None
    has_industry_partners: bool | None = None
    partner_organizations: list[str] = Field(default_factory=list, max_length=50)


class AccessibilityInput(BaseValidationSchema):
    is_inclusive: bool | None = None
    serves_girls: bool | None = None
    serves_pwds: bool | None = None


class SchoolProfileInput(BaseValidationSchema):
    """School profile as captured by the school survey; unknown answers stay ``None``."""

    id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    district: str = Field(..., min_length=1, max_length=100)
    environment: Literal["Urban", "Rural"] = "Rural"
    infrastructure: InfrastructureInput = Field(default_factory=InfrastructureInput)
    internet: InternetInput = Field(default_factory=InternetInput)
    software: SoftwareInput = Field(default_factory=SoftwareInput)
    human_capacity: HumanCapacityInput = Field(default_factory=HumanCapacityInput)
    pedagogical_usage: PedagogicalUsageInput = Field(default_factory=PedagogicalUsageInput)
    governance: GovernanceInput = Field(default_factory=GovernanceInput)
    community_engagement: CommunityEngagementInput = Field(
        default_factory=CommunityEngagementInput
    )
    accessibility: AccessibilityInput = Field(default_factory=AccessibilityInput)
    innovations: str | None = Field(None, max_length=5000)


class ICTReportInput(BaseValidationSchema):
    """One periodic ICT return; counts are non-negative, rates are percentages."""

    school_id: str = Field(..., min_length=1, max_length=64)
    report_date: date
    computers: int = Field(0, ge=0)
    tablets: int = Field(0, ge=0)
    projectors: int = Field(0, ge=0)
    functional_devices: int = Field(0, ge=0)
    internet_connection: Literal["None", "Slow", "Medium", "Fast"] = "None"
    power_backup: bool = False
    teachers_using_ict: int = Field(0, ge=0)
    total_teachers: int = Field(0, ge=0)
    weekly_lab_hours: float = Field(0, ge=0, le=168)
    student_digital_literacy_rate: float = Field(0, ge=0, le=100)
    educational_software: list[str] = Field(default_factory=list, max_length=50)
    ict_trained_teachers: int = Field(0, ge=0)
    support_staff: int = Field(0, ge=0)

    @model_validator(mode="after")
    def teacher_counts_within_total(self) -> ICTReportInput:
        if max(self.teachers_using_ict, self.ict_trained_teachers) > self.total_teachers:
            raise ValueError("Teacher counts cannot exceed the total number of teachers")
        return self


class SchoolMaturityInput(BaseValidationSchema):
    school: SchoolProfileInput
    reports: list[ICTReportInput] = Field(default_factory=list, max_length=500)


class SchoolSummaryInput(BaseValidationSchema):
    schools: list[SchoolProfileInput] = Field(default_factory=list, max_length=5000)
    reports: list[ICTReportInput] = Field(default_factory=list, max_length=50000)


class ValidationErrorDetail(BaseModel):
    """Schema for validation error details."""

    field: str
    message: str
    value: Any = None


class ValidationResponse(BaseModel):
    """Schema for validation responses."""

    success: bool
    errors: list[ValidationErrorDetail] = []
    data: dict[str, Any] | None = None


def validate_input(
    schema_class: type[BaseModel], data: dict[str, Any], exclude_unset: bool = False
) -> ValidationResponse:
    """
    Centralized validation function that returns structured validation results.

    Args:
        schema_class: Pydantic model class to use for validation
        data: Input data to validate
        exclude_unset: Only return fields present in ``data`` (partial updates)

    Returns:
        ValidationResponse with success status and any errors

    Example:
        >>> result = validate_input(ScoreInput, {"score": 62.5})
        >>> if result.success:
        ...     validated_data = result.data
        >>> else:
        ...     for error in result.errors:
        ...         print(f"Error in {error.field}: {error.message}")
    """
    try:
        validated = schema_class(**data)
        return ValidationResponse(
            success=True, data=validated.model_dump(exclude_unset=exclude_unset)
        )
    except Exception as e:
        errors = []
        if hasattr(e, "errors"):  # Pydantic validation errors
            for error in e.errors():
                errors.append(
                    ValidationErrorDetail(
                        field=".".join(str(x) for x in error["loc"]) or "general",
                        message=error["msg"],
                        value=error.get("input"),
                    )
                )
        else:
            errors.append(ValidationErrorDetail(field="general", message=str(e)))

        return ValidationResponse(success=False, errors=errors)
