"""
SABER-ICT framework catalog.

Static, read-only reference data shared by every assessment: the eight core
policy themes with their sub-themes, the six cross-cutting themes, the stage
anchor scores and the stage display colours.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Stage(str, Enum):
    """Ordered SABER maturity stage."""

    LATENT = "Latent"
    EMERGING = "Emerging"
    ESTABLISHED = "Established"
    ADVANCED = "Advanced"

    @property
    def rank(self) -> int:
        return _STAGE_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Stage):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Stage):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Stage):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Stage):
            return NotImplemented
        return self.rank >= other.rank


_STAGE_ORDER = (Stage.LATENT, Stage.EMERGING, Stage.ESTABLISHED, Stage.ADVANCED)

STAGE_SCORES: Mapping[Stage, int] = MappingProxyType(
    {
        Stage.LATENT: 25,
        Stage.EMERGING: 50,
        Stage.ESTABLISHED: 75,
        Stage.ADVANCED: 100,
    }
)

STAGE_COLORS: Mapping[Stage, str] = MappingProxyType(
    {
        Stage.LATENT: "#EF4444",
        Stage.EMERGING: "#F59E0B",
        Stage.ESTABLISHED: "#3B82F6",
        Stage.ADVANCED: "#10B981",
    }
)


@dataclass(frozen=True, slots=True)
class StageDescriptors:
    latent: str
    emerging: str
    established: str
    advanced: str

    def for_stage(self, stage: Stage) -> str:
        return getattr(self, stage.value.lower())


@dataclass(frozen=True, slots=True)
class SubThemeDefinition:
    code: str  # e.g. "1.1"
    name: str
    description: str
    stages: StageDescriptors


@dataclass(frozen=True, slots=True)
class ThemeDefinition:
    code: str
    name: str
    description: str
    sub_themes: tuple[SubThemeDefinition, ...]


@dataclass(frozen=True, slots=True)
class CrossCuttingDefinition:
    code: str
    name: str
    description: str
    stages: StageDescriptors


def _sub(code: str, name: str, description: str, *stages: str) -> SubThemeDefinition:
    return SubThemeDefinition(code, name, description, StageDescriptors(*stages))


POLICY_THEMES: tuple[ThemeDefinition, ...] = (
    ThemeDefinition(
        code="vision_planning",
        name="Vision and Planning",
        description=(
            "Strategic vision, sectoral linkages, funding, institutions, "
            "and public-private partnerships"
        ),
        sub_themes=(
            _sub(
                "1.1",
                "Vision/Goals",
                "Clear vision and goals for ICT in education",
                "No policy or vision for ICT in education",
                "Basic policy framework with general ICT goals",
                "Comprehensive policy with specific, measurable goals",
                "Transformative vision with innovation and 21st-century skills focus",
            ),
            _sub(
                "1.2",
                "Sectoral Linkages",
                "Alignment with other education and development policies",
                "ICT policy operates in isolation",
                "Some coordination with education policies",
                "Well-coordinated with education sector plans",
                "Fully integrated across all relevant sectors",
            ),
            _sub(
                "1.3",
                "Funding",
                "Sustainable financing for ICT in education",
                "Minimal or no dedicated funding",
                "Basic funding for infrastructure",
                "Sustained funding for infrastructure and capacity building",
                "Comprehensive funding including innovation and research",
            ),
            _sub(
                "1.4",
                "Institutions",
                "Institutional arrangements for ICT in education",
                "No dedicated institutional arrangements",
                "Basic institutional structure",
                "Coordinated institutional framework",
                "Integrated governance with clear accountability",
            ),
            _sub(
                "1.5",
                "Public-Private Partnerships",
                "Engagement with private sector for ICT in education",
                "No private sector engagement",
                "Ad hoc private sector initiatives",
                "Structured partnerships with monitoring",
                "Strategic partnerships with innovation focus",
            ),
        ),
    ),
    ThemeDefinition(
        code="ict_infrastructure",
        name="ICT Infrastructure",
        description="Electricity, equipment, networking, and technical support systems",
        sub_themes=(
            _sub(
                "2.1",
                "Electricity",
                "Reliable electricity access for schools",
                "Systemic electricity shortages",
                "Basic electricity in some schools",
                "Reliable electricity in most schools",
                "Universal access with backup systems",
            ),
            _sub(
                "2.2",
                "Equipment/Networking",
                "ICT devices and network infrastructure",
                "Few or no computers in schools",
                "Basic computer labs in some schools",
                "Widespread access to ICT devices",
                "Ubiquitous access with BYOD policies",
            ),
            _sub(
                "2.3",
                "Support/Maintenance",
                "Technical support and maintenance systems",
                "Ad hoc or no technical support",
                "Basic support arrangements",
                "Systematic support with trained staff",
                "Comprehensive support with preventive maintenance",
            ),
        ),
    ),
    ThemeDefinition(
        code="teachers",
        name="Teachers",
        description="Teacher training, competency standards, support networks, and leadership",
        sub_themes=(
            _sub(
                "3.1",
                "Training",
                "ICT training for teachers",
                "No ICT training for teachers",
                "Basic ICT skills training",
                "Pedagogical ICT integration training",
                "Ongoing professional development in ICT pedagogy",
            ),
            _sub(
                "3.2",
                "Competency Standards",
                "ICT competency standards for teachers",
                "No ICT competency standards",
                "Basic ICT skills requirements",
                "Comprehensive competency framework",
                "Standards embedded in certification and career progression",
            ),
            _sub(
                "3.3",
                "Networks/Resource Centers",
                "Teacher support networks and resource centers",
                "No teacher support networks",
                "Basic resource sharing",
                "Regional support centers",
                "Comprehensive network with online communities",
            ),
            _sub(
                "3.4",
                "Leadership Training",
                "ICT leadership training for school administrators",
                "No ICT focus in leadership training",
                "Basic ICT awareness for leaders",
                "ICT leadership competency standards",
                "Comprehensive ICT leadership development programs",
            ),
        ),
    ),
    ThemeDefinition(
        code="skills_competencies",
        name="Skills and Competencies",
        description="Digital literacy and 21st-century skills development",
        sub_themes=(
            _sub(
                "4.1",
                "Digital Literacy",
                "Digital literacy curriculum and standards",
                "No digital literacy efforts",
                "Basic computer skills curriculum",
                "Comprehensive digital literacy framework",
                "21st-century skills with critical thinking and creativity",
            ),
            _sub(
                "4.2",
                "Lifelong Learning",
                "ICT-enabled lifelong learning opportunities",
                "No ICT-enabled lifelong learning",
                "Basic adult education programs",
                "Structured lifelong learning with ICT",
                "Comprehensive lifelong learning ecosystem",
            ),
        ),
    ),
    ThemeDefinition(
        code="learning_resources",
        name="Learning Resources",
        description="Digital content, educational resources, and learning materials",
        sub_themes=(
            _sub(
                "5.1",
                "Digital Content",
                "Digital learning content and resources",
                "No digital learning content",
                "Basic digital resources available",
                "Curriculum-aligned digital content",
                "Comprehensive digital content ecosystem with OER",
            ),
        ),
    ),
    ThemeDefinition(
        code="emis",
        name="EMIS (Education Management Information Systems)",
        description="ICT use in education management and administration",
        sub_themes=(
            _sub(
                "6.1",
                "ICT in Management",
                "ICT systems for education management",
                "No EMIS or basic paper-based systems",
                "Basic digital data collection",
                "Comprehensive EMIS with multi-level access",
                "Integrated EMIS with public data sharing and analytics",
            ),
        ),
    ),
    ThemeDefinition(
        code="monitoring_evaluation",
        name="Monitoring & Evaluation",
        description="Impact measurement, assessment systems, and research & development",
        sub_themes=(
            _sub(
                "7.1",
                "Impact Measurement",
                "Monitoring and evaluation of ICT in education impact",
                "Irregular input tracking only",
                "Basic output monitoring",
                "Systematic impact evaluation",
                "Evidence-based policy decisions with continuous improvement",
            ),
            _sub(
                "7.2",
                "ICT in Assessments",
                "Use of ICT in student assessments",
                "No ICT use in assessments",
                "Basic computer-based testing",
                "Integrated digital assessment tools",
                "Comprehensive formative and summative digital assessments",
            ),
            _sub(
                "7.3",
                "R&D/Innovation",
                "Research and development in ICT for education",
                "Minimal or no R&D activities",
                "Basic pilot projects",
                "Systematic R&D with dedicated funding",
                "Centers of excellence with innovation ecosystems",
            ),
        ),
    ),
    ThemeDefinition(
        code="equity_inclusion_safety",
        name="Equity, Inclusion, Safety",
        description="Addressing disparities, digital safety, and inclusive access",
        sub_themes=(
            _sub(
                "8.1",
                "Pro-Equity",
                "Addressing digital divides and ensuring equitable access",
                "No provisions for equity",
                "Basic recognition of digital divides",
                "Targeted interventions for disadvantaged groups",
                "Comprehensive equity framework addressing all disparities",
            ),
            _sub(
                "8.2",
                "Digital Safety",
                "Digital citizenship, online safety, and ethics",
                "No digital safety policies",
                "Basic online safety awareness",
                "Comprehensive digital citizenship curriculum",
                "Integrated digital ethics and citizenship education",
            ),
        ),
    ),
)


CROSS_CUTTING_THEMES: tuple[CrossCuttingDefinition, ...] = (
    CrossCuttingDefinition(
        code="distance_education",
        name="Distance Education",
        description="Remote and blended learning capabilities",
        stages=StageDescriptors(
            "Minimal distance education capabilities",
            "Basic online learning platforms",
            "Structured blended learning programs",
            "Comprehensive distance education at scale",
        ),
    ),
    CrossCuttingDefinition(
        code="mobiles",
        name="Mobile Learning",
        description="Strategic use of mobile devices in education",
        stages=StageDescriptors(
            "Mobile devices deterred or banned",
            "Limited mobile learning initiatives",
            "Strategic mobile learning programs",
            "Comprehensive mobile-first education strategy",
        ),
    ),
    CrossCuttingDefinition(
        code="early_childhood",
        name="Early Childhood Development",
        description="ICT integration in early childhood education",
        stages=StageDescriptors(
            "No ICT policy for early childhood",
            "Basic ICT exposure for young children",
            "Age-appropriate ICT integration",
            "Coherent ICT framework for early childhood development",
        ),
    ),
    CrossCuttingDefinition(
        code="open_educational_resources",
        name="Open Educational Resources",
        description="OER policies and repositories",
        stages=StageDescriptors(
            "No OER policy or awareness",
            "Basic OER initiatives",
            "National OER repository with clear policies",
            "Comprehensive OER ecosystem with IP frameworks",
        ),
    ),
    CrossCuttingDefinition(
        code="community_involvement",
        name="Community Involvement",
        description="Stakeholder engagement in ICT education",
        stages=StageDescriptors(
            "Community involvement ignored",
            "Basic community awareness",
            "Structured community engagement",
            "Integral stakeholder participation in governance",
        ),
    ),
    CrossCuttingDefinition(
        code="data_privacy",
        name="Data Privacy",
        description="Student data protection and privacy policies",
        stages=StageDescriptors(
            "Data privacy unaddressed",
            "Basic data protection awareness",
            "Comprehensive data privacy policies",
            "Integrated privacy-by-design with strong safeguards",
        ),
    ),
)

THEMES_BY_CODE: Mapping[str, ThemeDefinition] = MappingProxyType(
    {theme.code: theme for theme in POLICY_THEMES}
)
CROSS_CUTTING_BY_CODE: Mapping[str, CrossCuttingDefinition] = MappingProxyType(
    {theme.code: theme for theme in CROSS_CUTTING_THEMES}
)


def get_theme_definition(code: str) -> ThemeDefinition | None:
    return THEMES_BY_CODE.get(code)


def get_cross_cutting_definition(code: str) -> CrossCuttingDefinition | None:
    return CROSS_CUTTING_BY_CODE.get(code)
