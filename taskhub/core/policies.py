"""
Dynamic authorization policies.

Requirement names are resolved on demand: anything that looks like a
permission code becomes an exact-match check against the caller's
permission claims; other names go through a registry of named policies.
"""

from __future__ import annotations

from typing import Callable, Iterable

import structlog

from taskhub.core.context import CurrentCaller
from taskhub.core.exceptions import ForbiddenError
from taskhub.core.rbac import is_permission_code

logger = structlog.get_logger()

PolicyEvaluator = Callable[[CurrentCaller], bool]

AUTHENTICATED = "authenticated"


class UnknownPolicyError(LookupError):
    """Requirement is neither a permission code nor a registered policy"""


def permission_evaluator(code: str) -> PolicyEvaluator:
    # Exact match only: no wildcards, no hierarchy
    def evaluate(caller: CurrentCaller) -> bool:
        return caller.has_permission(code)

    evaluate.__name__ = f"has_{code}"
    return evaluate


class PolicyProvider:
    def __init__(self) -> None:
        self._named: dict[str, PolicyEvaluator] = {}
        self._permission_policies: dict[str, PolicyEvaluator] = {}

    def register(self, name: str, evaluator: PolicyEvaluator) -> None:
        if is_permission_code(name):
            raise ValueError(f"Named policy '{name}' collides with the permission code convention")
        self._named[name] = evaluator

    def get_policy(self, name: str) -> PolicyEvaluator:
        if is_permission_code(name):
            policy = self._permission_policies.get(name)
            if policy is None:
                policy = self._permission_policies[name] = permission_evaluator(name)
            return policy

        try:
            return self._named[name]
        except KeyError:
            raise UnknownPolicyError(f"No policy named '{name}'") from None

    def authorize(self, caller: CurrentCaller, requirements: Iterable[str]) -> None:
        """
        Require every named policy to pass

        Raises:
            ForbiddenError: a requirement failed; which one is only logged
        """
        for name in requirements:
            if not self.get_policy(name)(caller):
                logger.warning(
                    "Authorization denied",
                    user_id=str(caller.user_id),
                    tenant_id=str(caller.tenant_id),
                    requirement=name,
                )
                raise ForbiddenError()


policy_provider = PolicyProvider()
policy_provider.register(AUTHENTICATED, lambda caller: caller.user_id is not None)
