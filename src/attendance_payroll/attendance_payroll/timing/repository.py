from __future__ import annotations

from typing import Protocol, Sequence

from .model import TimingPolicy


class TimingPolicyRepository(Protocol):
    def get_for_department(self, department: str) -> TimingPolicy | None:
        raise NotImplementedError

    def list_all(self) -> Sequence[TimingPolicy]:
        raise NotImplementedError

    def upsert(self, policy: TimingPolicy) -> None:
        """Create or replace the policy of ``policy.department``."""

        raise NotImplementedError
