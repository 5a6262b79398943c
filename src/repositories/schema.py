"""Schema bootstrap for the ladder tables."""

from __future__ import annotations

from sqlalchemy.engine import Engine

from models import Base


def ensure_ladder_schema(engine: Engine) -> None:
    """Create every ladder table and index that does not exist yet."""
    Base.metadata.create_all(bind=engine)
