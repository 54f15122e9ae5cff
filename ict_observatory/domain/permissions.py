"""
Role-based capability table.

Each ``UserRole`` maps to one immutable ``RolePermissions`` record. District and
school restrictions are resolved against the user at lookup time.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Literal, Mapping

from .models import User, UserRole


@dataclass(frozen=True, slots=True)
class RolePermissions:
    can_view_all_schools: bool = False
    can_edit_all_schools: bool = False
    can_delete_schools: bool = False
    can_view_all_reports: bool = False
    can_edit_all_reports: bool = False
    can_delete_reports: bool = False
    can_manage_users: bool = False
    can_view_analytics: bool = False
    can_export_data: bool = False
    restricted_to_district: str | None = None
    restricted_to_school: str | None = None


@dataclass(frozen=True, slots=True)
class RoleProfile:
    display_name: str
    description: str
    permissions: RolePermissions
    district_scoped: bool = False
    school_scoped: bool = False


ROLE_PROFILES: Mapping[UserRole, RoleProfile] = MappingProxyType(
    {
        UserRole.SUPER_ADMIN: RoleProfile(
            display_name="Super Administrator",
            description=(
                "Full system access with all permissions including user management "
                "and system configuration."
            ),
            permissions=RolePermissions(
                can_view_all_schools=True,
                can_edit_all_schools=True,
                can_delete_schools=True,
                can_view_all_reports=True,
                can_edit_all_reports=True,
                can_delete_reports=True,
                can_manage_users=True,
                can_view_analytics=True,
                can_export_data=True,
            ),
        ),
        UserRole.MINISTRY_ADMIN: RoleProfile(
            display_name="Ministry Administrator",
            description=(
                "Ministry of Education officials with broad access to manage schools "
                "and reports across all districts."
            ),
            permissions=RolePermissions(
                can_view_all_schools=True,
                can_edit_all_schools=True,
                can_view_all_reports=True,
                can_edit_all_reports=True,
                can_manage_users=True,
                can_view_analytics=True,
                can_export_data=True,
            ),
        ),
        UserRole.DISTRICT_ADMIN: RoleProfile(
            display_name="District Administrator",
            description=(
                "District Education Officers with access to manage schools and reports "
                "within their district."
            ),
            permissions=RolePermissions(
                can_view_all_schools=True,
                can_edit_all_schools=True,
                can_view_all_reports=True,
                can_edit_all_reports=True,
                can_manage_users=True,
                can_view_analytics=True,
                can_export_data=True,
            ),
            district_scoped=True,
        ),
        UserRole.SCHOOL_ADMIN: RoleProfile(
            display_name="School Administrator",
            description=(
                "Head teachers/Principals with access to manage their school's data "
                "and reports."
            ),
            permissions=RolePermissions(
                can_edit_all_reports=True,
                can_view_analytics=True,
                can_export_data=True,
            ),
            school_scoped=True,
        ),
        UserRole.ICT_COORDINATOR: RoleProfile(
            display_name="ICT Coordinator",
            description=(
                "School ICT coordinators responsible for updating ICT observations "
                "and reports."
            ),
            permissions=RolePermissions(can_edit_all_reports=True),
            school_scoped=True,
        ),
        UserRole.DATA_ANALYST: RoleProfile(
            display_name="Data Analyst",
            description="Read-only access for data analysis and reporting across the system.",
            permissions=RolePermissions(
                can_view_all_schools=True,
                can_view_all_reports=True,
                can_view_analytics=True,
                can_export_data=True,
            ),
        ),
        UserRole.OBSERVER: RoleProfile(
            display_name="Observer",
            description="Limited read-only access for external stakeholders and partners.",
            permissions=RolePermissions(
                can_view_all_schools=True,
                can_view_all_reports=True,
            ),
        ),
    }
)


def get_role_permissions(role: UserRole, user: User | None = None) -> RolePermissions:
    """Capability record for ``role``, with scope restrictions taken from ``user``."""
    profile = ROLE_PROFILES[UserRole(role)]
    permissions = profile.permissions
    if profile.district_scoped and user is not None:
        permissions = replace(permissions, restricted_to_district=user.district)
    if profile.school_scoped and user is not None:
        permissions = replace(permissions, restricted_to_school=user.school_id)
    return permissions


def get_role_display_name(role: UserRole) -> str:
    return ROLE_PROFILES[UserRole(role)].display_name


def get_role_description(role: UserRole) -> str:
    return ROLE_PROFILES[UserRole(role)].description


def can_access_resource(
    user: User,
    resource_type: Literal["school", "report"],
    school_id: str | None = None,
    district: str | None = None,
) -> bool:
    """Check whether ``user`` may view a school or report, honouring scope restrictions."""
    if user.role == UserRole.SUPER_ADMIN:
        return True

    permissions = get_role_permissions(user.role, user)

    if permissions.restricted_to_district and district:
        if permissions.restricted_to_district != district:
            return False

    if permissions.restricted_to_school and school_id:
        if permissions.restricted_to_school != school_id:
            return False

    if resource_type == "school":
        return permissions.can_view_all_schools or bool(permissions.restricted_to_school)
    if resource_type == "report":
        return permissions.can_view_all_reports or bool(permissions.restricted_to_school)
    return False
