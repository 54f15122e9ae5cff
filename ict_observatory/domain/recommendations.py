"""
Recommendation synthesis for policy assessments.

Theme-level recommendations come from a fixed template per catalog theme and
are emitted for themes at Latent (high priority) or Emerging (medium priority).
Every sub-theme scoring below 50 gets a generic medium-priority recommendation.
The result is stable-sorted by priority weight, so themes keep catalog order and
each theme's recommendation precedes those of its own sub-themes within a
priority band.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .framework import Stage
from .models import PolicyAssessment, PolicyRecommendation, Priority, SubTheme, Theme
from .scoring import calculate_theme_score, score_to_stage

SUB_THEME_ATTENTION_THRESHOLD = 50


@dataclass(frozen=True, slots=True)
class RecommendationTemplate:
    title: str
    description: str
    action_items: tuple[str, ...]
    timeline: str
    resources: tuple[str, ...]
    expected_impact: str


THEME_TEMPLATES: Mapping[str, RecommendationTemplate] = MappingProxyType(
    {
        "vision_planning": RecommendationTemplate(
            title="Develop Comprehensive ICT Education Strategy",
            description="Create a clear vision and strategic plan for ICT integration in education",
            action_items=(
                "Conduct stakeholder consultations to define ICT education vision",
                "Develop measurable goals and targets for ICT integration",
                "Establish coordination mechanisms across sectors",
                "Secure sustainable funding commitments",
            ),
            timeline="6-12 months",
            resources=(
                "Policy development team",
                "Stakeholder engagement budget",
                "Technical expertise",
            ),
            expected_impact="Foundation for systematic ICT education development",
        ),
        "ict_infrastructure": RecommendationTemplate(
            title="Strengthen ICT Infrastructure Foundation",
            description=(
                "Improve basic ICT infrastructure including electricity, devices, "
                "and support systems"
            ),
            action_items=(
                "Conduct infrastructure needs assessment",
                "Develop device procurement and distribution plan",
                "Establish technical support systems",
                "Ensure reliable electricity access",
            ),
            timeline="12-24 months",
            resources=(
                "Infrastructure budget",
                "Technical support staff",
                "Maintenance contracts",
            ),
            expected_impact=(
                "Reliable ICT infrastructure enabling effective teaching and learning"
            ),
        ),
        "teachers": RecommendationTemplate(
            title="Build Teacher ICT Capacity",
            description=(
                "Develop comprehensive teacher training and support systems for ICT integration"
            ),
            action_items=(
                "Design ICT competency framework for teachers",
                "Implement systematic teacher training programs",
                "Establish teacher support networks",
                "Integrate ICT skills in teacher certification",
            ),
            timeline="18-36 months",
            resources=(
                "Training budget",
                "Master trainers",
                "Learning materials",
                "Support infrastructure",
            ),
            expected_impact=(
                "Teachers equipped with skills and confidence to integrate ICT effectively"
            ),
        ),
        "skills_competencies": RecommendationTemplate(
            title="Develop Student Digital Competencies",
            description=(
                "Implement comprehensive digital literacy and 21st-century skills curriculum"
            ),
            action_items=(
                "Develop age-appropriate digital literacy curriculum",
                "Train teachers in digital skills pedagogy",
                "Integrate digital competencies across subjects",
                "Establish assessment frameworks for digital skills",
            ),
            timeline="12-24 months",
            resources=(
                "Curriculum development team",
                "Teacher training",
                "Assessment tools",
            ),
            expected_impact="Students equipped with essential digital skills for future success",
        ),
        "learning_resources": RecommendationTemplate(
            title="Expand Digital Learning Resources",
            description="Develop and curate high-quality digital content aligned with curriculum",
            action_items=(
                "Establish digital content repository",
                "Develop curriculum-aligned digital resources",
                "Implement content quality assurance processes",
                "Train teachers in digital content integration",
            ),
            timeline="12-18 months",
            resources=(
                "Content development team",
                "Technology platform",
                "Quality assurance processes",
            ),
            expected_impact=(
                "Rich digital learning environment supporting improved educational outcomes"
            ),
        ),
        "emis": RecommendationTemplate(
            title="Implement Comprehensive EMIS",
            description="Establish robust education management information systems",
            action_items=(
                "Design integrated EMIS architecture",
                "Implement data collection and management systems",
                "Train staff in EMIS use and maintenance",
                "Establish data governance and privacy policies",
            ),
            timeline="18-30 months",
            resources=(
                "EMIS development team",
                "Technology infrastructure",
                "Training programs",
            ),
            expected_impact=(
                "Data-driven decision making and improved education system management"
            ),
        ),
        "monitoring_evaluation": RecommendationTemplate(
            title="Establish M&E Framework",
            description=(
                "Implement systematic monitoring and evaluation of ICT education initiatives"
            ),
            action_items=(
                "Develop M&E framework with clear indicators",
                "Establish baseline data collection systems",
                "Implement regular assessment and evaluation cycles",
                "Build capacity for evidence-based decision making",
            ),
            timeline="12-18 months",
            resources=(
                "M&E specialists",
                "Data collection tools",
                "Analysis capacity",
            ),
            expected_impact="Continuous improvement based on evidence and systematic learning",
        ),
        "equity_inclusion_safety": RecommendationTemplate(
            title="Ensure Equitable and Safe ICT Access",
            description="Address digital divides and ensure safe, inclusive ICT education",
            action_items=(
                "Conduct equity analysis and gap assessment",
                "Develop targeted interventions for disadvantaged groups",
                "Implement digital safety and citizenship curriculum",
                "Establish inclusive design principles for ICT initiatives",
            ),
            timeline="12-24 months",
            resources=(
                "Equity analysis team",
                "Targeted intervention budget",
                "Safety curriculum",
            ),
            expected_impact=(
                "Inclusive ICT education benefiting all students regardless of background"
            ),
        ),
    }
)

SUB_THEME_TIMELINE = "6-12 months"
SUB_THEME_RESOURCES = ("Technical expertise", "Implementation budget", "Monitoring systems")


def theme_recommendation(theme: Theme, stage: Stage) -> PolicyRecommendation | None:
    template = THEME_TEMPLATES.get(theme.code)
    if template is None:
        return None
    return PolicyRecommendation(
        id=f"rec_{theme.code}",
        theme_code=theme.code,
        priority=Priority.HIGH if stage == Stage.LATENT else Priority.MEDIUM,
        title=template.title,
        description=template.description,
        action_items=list(template.action_items),
        timeline=template.timeline,
        resources=list(template.resources),
        expected_impact=template.expected_impact,
    )


def sub_theme_recommendation(theme_code: str, sub_theme: SubTheme) -> PolicyRecommendation:
    name = sub_theme.name
    return PolicyRecommendation(
        id=f"rec_{theme_code}_{sub_theme.code}",
        theme_code=theme_code,
        sub_theme_code=sub_theme.code,
        priority=Priority.MEDIUM,
        title=f"Improve {name}",
        description=f"Address gaps in {name} to advance policy maturity",
        action_items=[
            f"Assess current state of {name}",
            "Develop improvement plan",
            "Implement targeted interventions",
            "Monitor progress and adjust as needed",
        ],
        timeline=SUB_THEME_TIMELINE,
        resources=list(SUB_THEME_RESOURCES),
        expected_impact=f"Enhanced {name} contributing to overall policy advancement",
    )


def sort_by_priority(recommendations: list[PolicyRecommendation]) -> list[PolicyRecommendation]:
    """High before medium before low; ties keep their emission order."""
    return sorted(recommendations, key=lambda rec: -Priority(rec.priority).weight)


def generate_policy_recommendations(
    assessment: PolicyAssessment, logger: logging.Logger | None = None
) -> list[PolicyRecommendation]:
    logger = logger or logging.getLogger(__name__)
    recommendations: list[PolicyRecommendation] = []

    for theme in assessment.themes:
        stage = score_to_stage(calculate_theme_score(theme))

        if stage in (Stage.LATENT, Stage.EMERGING):
            recommendation = theme_recommendation(theme, stage)
            if recommendation is None:
                logger.warning("No recommendation template for theme code %r", theme.code)
            else:
                recommendations.append(recommendation)

        for sub_theme in theme.sub_themes:
            if sub_theme.score < SUB_THEME_ATTENTION_THRESHOLD:
                recommendations.append(sub_theme_recommendation(theme.code, sub_theme))

    return sort_by_priority(recommendations)
