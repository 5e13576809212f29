from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from .model import User


class UserRepository(Protocol):
    """Read-only view of the external user provider.

    Note (DIP): services depend on this interface, never on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> User | None:
        raise NotImplementedError

    def list_by_ids(self, user_ids: Iterable[int]) -> Sequence[User]:
        raise NotImplementedError

    def list_active(self, *, department: str | None = None) -> Sequence[User]:
        raise NotImplementedError
