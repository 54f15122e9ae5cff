from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class UserORM(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False)
    district: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sub_county: Mapped[str | None] = mapped_column(String(100), nullable=True)
    school_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class PolicyAssessmentORM(Base):
    __tablename__ = "policy_assessments"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    level: Mapped[str] = mapped_column(String(16), nullable=False)
    assessor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    assessor_role: Mapped[str] = mapped_column(String(255), nullable=False)
    assessor_email: Mapped[str] = mapped_column(String(255), nullable=False)
    assessment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    school_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    district_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(16), default="draft", nullable=False)
    overall_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    overall_stage: Mapped[str] = mapped_column(String(16), default="Latent", nullable=False)
    created_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "level IN ('school','district','national')", name="ck_assessment_level"
        ),
        CheckConstraint(
            "status IN ('draft','completed','approved','archived')", name="ck_assessment_status"
        ),
    )

    sub_theme_scores: Mapped[list[SubThemeScoreORM]] = relationship(
        back_populates="assessment", cascade="all, delete-orphan"
    )
    cross_cutting_scores: Mapped[list[CrossCuttingScoreORM]] = relationship(
        back_populates="assessment", cascade="all, delete-orphan"
    )


class SubThemeScoreORM(Base):
    __tablename__ = "sub_theme_scores"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    assessment_id: Mapped[int] = mapped_column(
        ForeignKey("policy_assessments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    theme_code: Mapped[str] = mapped_column(String(64), nullable=False)
    sub_theme_code: Mapped[str] = mapped_column(String(64), nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    evidence: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_assessed: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    __table_args__ = (
        UniqueConstraint("assessment_id", "sub_theme_code", name="uq_sub_theme_score"),
        CheckConstraint("score >= 0 AND score <= 100", name="ck_sub_theme_score_range"),
    )

    assessment: Mapped[PolicyAssessmentORM] = relationship(back_populates="sub_theme_scores")


class CrossCuttingScoreORM(Base):
    __tablename__ = "cross_cutting_scores"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    assessment_id: Mapped[int] = mapped_column(
        ForeignKey("policy_assessments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    code: Mapped[str] = mapped_column(String(64), nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    evidence: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("assessment_id", "code", name="uq_cross_cutting_score"),
        CheckConstraint("score >= 0 AND score <= 100", name="ck_cross_cutting_score_range"),
    )

    assessment: Mapped[PolicyAssessmentORM] = relationship(back_populates="cross_cutting_scores")
