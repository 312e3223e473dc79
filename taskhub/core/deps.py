"""
FastAPI Dependencies
Bearer authentication and permission requirements
"""

from typing import Callable, Optional

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import structlog

from taskhub.core.context import CurrentCaller
from taskhub.core.exceptions import UnauthenticatedError
from taskhub.core.policies import AUTHENTICATED, policy_provider
from taskhub.core.security import credential_codec

logger = structlog.get_logger()

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> CurrentCaller:
    """
    Resolve the caller from the bearer credential

    No database round trip: identity, tenant and permissions come from
    the verified claims.

    Raises:
        UnauthenticatedError: no bearer credential
        InvalidTokenError: credential failed verification
    """
    if not credentials:
        logger.warning("Missing authentication credentials")
        raise UnauthenticatedError()

    verified = credential_codec.verify(credentials.credentials)
    caller = CurrentCaller.from_credential(verified)

    structlog.contextvars.bind_contextvars(user_id=str(caller.user_id), tenant_id=str(caller.tenant_id))
    return caller


def require_permissions(*requirements: str) -> Callable:
    """
    Dependency factory for permission requirements

    Every requirement must be satisfied. Stacking several of these
    dependencies on one route also combines with AND. Requirement names
    are resolved here, so an unknown named policy fails when the route
    is declared rather than per request.
    """
    names = tuple(requirements) or (AUTHENTICATED,)
    for name in names:
        policy_provider.get_policy(name)

    async def permission_checker(
        caller: CurrentCaller = Depends(get_current_caller),
    ) -> CurrentCaller:
        policy_provider.authorize(caller, names)
        logger.debug("Permission check passed", user_id=str(caller.user_id), requirements=names)
        return caller

    return permission_checker
