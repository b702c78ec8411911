"""Tables behind the statement export: sheet rows and lock reservations.

``metadata`` is the target Alembic migrates and autogenerates against.
Sessions come from :mod:`db.client`.
"""

from __future__ import annotations

from .models.ingest import Base, SiLockReservation, SiSheetRow

metadata = Base.metadata

__all__ = ["Base", "SiLockReservation", "SiSheetRow", "metadata"]
