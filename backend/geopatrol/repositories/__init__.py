"""
GeoPatrol Backend — Repositories (Credential Store & Report Store)
===================================================================

What:  Thin async wrappers around one AsyncSession each.
Why:   Services speak in domain terms (find courier, insert report) and the
       repositories own the SQL and the translation of driver errors into
       application exceptions.

Repository Inventory:
    - CourierRepository: users table (username lookup, insert)
    - ReportRepository:  laporan_pengiriman table (insert, list by courier)
"""

from geopatrol.repositories.courier_repository import CourierRepository
from geopatrol.repositories.report_repository import ReportRepository

__all__ = ["CourierRepository", "ReportRepository"]
