"""Shared SQLAlchemy models registry for the workspace database.

Holds the export tables written by ``statement_ingest``: appended sheet rows
and the lock reservations that serialize appends per sheet.
"""

from .ingest import Base, SiLockReservation, SiSheetRow

__all__ = [
    "Base",
    "SiSheetRow",
    "SiLockReservation",
]
