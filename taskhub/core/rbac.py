"""
Canonical permission catalog and system role definitions for TaskHub.

Permission codes are dot-namespaced "<resource>.<action>" strings. Any
string following that convention is treated as a permission requirement
by the policy engine, so adding a code here needs no other code change.
"""

from __future__ import annotations

# resource -> actions
CATALOG_RESOURCES: dict[str, tuple[str, ...]] = {
    "projects": ("view", "create", "edit", "delete"),
    "tasks": ("view", "create", "edit", "delete", "assign"),
    "sprints": ("view", "create", "edit", "delete"),
    "comments": ("create", "delete"),
    "attachments": ("view", "upload", "delete"),
    "users": ("view", "create", "edit", "delete"),
    "roles": ("view", "create", "edit", "delete"),
    "permissions": ("view",),
    "activity_logs": ("view",),
    "dashboard": ("view",),
}

ALL_PERMISSIONS: tuple[str, ...] = tuple(
    f"{resource}.{action}"
    for resource, actions in CATALOG_RESOURCES.items()
    for action in actions
)

ADMIN_ROLE = "Admin"
MEMBER_ROLE = "Member"
VIEWER_ROLE = "Viewer"

_MEMBER_WRITABLE = ("projects", "tasks", "sprints", "comments", "attachments")


def is_permission_code(value: str) -> bool:
    """A dot separating non-empty segments marks a permission code"""
    if not value or "." not in value:
        return False
    return all(segment for segment in value.split("."))


def view_permissions() -> list[str]:
    return sorted(code for code in ALL_PERMISSIONS if code.endswith(".view"))


def member_permissions() -> list[str]:
    granted = set(view_permissions())
    for code in ALL_PERMISSIONS:
        resource, action = code.split(".", 1)
        if resource in _MEMBER_WRITABLE and action in ("create", "edit", "upload"):
            granted.add(code)
    return sorted(granted)


SYSTEM_ROLES: dict[str, dict] = {
    ADMIN_ROLE: {
        "description": "Full access to every tenant resource",
        "permissions": sorted(ALL_PERMISSIONS),
    },
    MEMBER_ROLE: {
        "description": "Works on projects and tasks",
        "permissions": member_permissions(),
    },
    VIEWER_ROLE: {
        "description": "Read-only access",
        "permissions": view_permissions(),
    },
}


def describe_permission(code: str) -> str:
    """Display name for a catalog code, e.g. "activity_logs.view" -> "View Activity Logs" """
    resource, action = code.split(".", 1)
    return f"{action.replace('_', ' ').title()} {resource.replace('_', ' ').title()}"
