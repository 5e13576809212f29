from __future__ import annotations

import logging
from typing import Sequence

from ..common.cache import TTLCache
from ..core.constants import DEFAULT_POLICY_CACHE_SECONDS
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, PolicyNotFound
from .model import TimingPolicy
from .repository import TimingPolicyRepository

logger = logging.getLogger(__name__)


class TimingPolicyResolver:
    """Resolve the timing policy of a department through a short-lived cache.

    ``fallback`` (if given) is used for departments with no configured
    policy; without it a missing policy raises ``PolicyNotFound``.
    """

    def __init__(
        self,
        policies: TimingPolicyRepository,
        *,
        cache_seconds: float = DEFAULT_POLICY_CACHE_SECONDS,
        fallback: TimingPolicy | None = None,
    ):
        self._policies = policies
        self._cache: TTLCache[TimingPolicy] = TTLCache(cache_seconds)
        self._fallback = fallback

    def resolve(self, department: str | None) -> TimingPolicy:
        key = (department or "").strip().lower()
        if key:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

            policy = self._policies.get_for_department(key)
            if policy and policy.is_active:
                self._cache.set(key, policy)
                return policy

        if self._fallback is not None:
            return self._fallback
        raise PolicyNotFound(f"No timing policy configured for department {department!r}")

    def invalidate(self, department: str | None = None) -> None:
        self._cache.invalidate(department.strip().lower() if department else None)
        logger.info("Timing policy cache invalidated (department=%s)", department or "*")


class TimingPolicyService:
    def __init__(self, policies: TimingPolicyRepository, resolver: TimingPolicyResolver):
        self._policies = policies
        self._resolver = resolver

    def list_all(self) -> Sequence[TimingPolicy]:
        return self._policies.list_all()

    def upsert(self, *, current_role: Role, policy: TimingPolicy) -> TimingPolicy:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can change timing policies")

        self._policies.upsert(policy)
        self._resolver.invalidate(policy.department)
        logger.info(
            "Timing policy saved: %s %s-%s",
            policy.department,
            policy.check_in_time.strftime("%H:%M"),
            policy.check_out_time.strftime("%H:%M"),
        )
        return policy
