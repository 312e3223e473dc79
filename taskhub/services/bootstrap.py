"""
Authorization bootstrap.

Seeds the permission catalog and the system roles. Idempotent: existing
entries are kept, missing ones are appended, and system roles gain any
newly defined codes.
"""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.context import CurrentCaller
from taskhub.core.database import transaction
from taskhub.core.rbac import ALL_PERMISSIONS, SYSTEM_ROLES, describe_permission
from taskhub.models.role import Permission, Role
from taskhub.repositories.permission import permission_repository
from taskhub.repositories.role import role_repository
from taskhub.services.permission import permission_service

logger = structlog.get_logger()


async def ensure_authorization_catalog(db: AsyncSession) -> list[str]:
    """
    Seed catalog entries and system roles

    Returns:
        Codes appended to the catalog by this run
    """
    ctx = CurrentCaller.system()

    async with transaction(db):
        existing = await permission_repository.existing_codes(db)
        added = [code for code in ALL_PERMISSIONS if code not in existing]
        for code in added:
            await permission_repository.add(
                db,
                ctx,
                Permission(code=code, name=describe_permission(code)),
                commit=False,
            )

        for name, definition in SYSTEM_ROLES.items():
            role = await role_repository.get_system_role(db, name)
            if role is None:
                role = await role_repository.add(
                    db,
                    ctx,
                    Role(name=name, description=definition["description"]),
                    commit=False,
                )
                current: set[str] = set()
                logger.info("System role created", role=name)
            else:
                current = {p.code for p in await role_repository.get_permissions(db, role.id)}

            missing = set(definition["permissions"]) - current
            if missing:
                granted = await permission_repository.get_by_codes(db, ctx, current | missing)
                await role_repository.replace_permissions(db, role.id, [p.id for p in granted])
                logger.info("System role permissions granted", role=name, added=len(missing))

    if added:
        await permission_service.invalidate_catalog()
        logger.info("Permission catalog extended", added=len(added))
    else:
        logger.info("Permission catalog up to date", count=len(ALL_PERMISSIONS))

    return added
