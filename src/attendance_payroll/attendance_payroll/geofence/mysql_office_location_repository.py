from __future__ import annotations

from typing import Sequence

from ..common.cache import TTLCache
from ..core.constants import DEFAULT_POLICY_CACHE_SECONDS
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, to_bool
from .model import OfficeLocation
from .repository import OfficeLocationRepository


class MySQLOfficeLocationRepository(OfficeLocationRepository):
    """Office locations change rarely, so the active list is cached briefly."""

    def __init__(self, conn_factory: DatabaseConnection, *, cache_seconds: float = DEFAULT_POLICY_CACHE_SECONDS):
        self._conn_factory = conn_factory
        self._cache: TTLCache[tuple[OfficeLocation, ...]] = TTLCache(cache_seconds)

    def list_active(self) -> Sequence[OfficeLocation]:
        cached = self._cache.get("active")
        if cached is not None:
            return cached

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT location_id, name, latitude, longitude, radius_meters, address, is_active
                FROM office_locations
                WHERE is_active=1
                ORDER BY location_id
                """
            )
            rows = fetchall(cur)

        offices = tuple(
            OfficeLocation(
                location_id=int(r["location_id"]),
                name=r["name"],
                latitude=float(r["latitude"]),
                longitude=float(r["longitude"]),
                radius_meters=float(r["radius_meters"]),
                address=r.get("address"),
                is_active=to_bool(r.get("is_active", 1)),
            )
            for r in rows
        )
        self._cache.set("active", offices)
        return offices
