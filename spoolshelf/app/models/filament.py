from datetime import datetime, timedelta, timezone

from sqlalchemy import DateTime, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from spoolshelf.app.core.database import Base


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (SQLite drops tzinfo anyway)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def next_timestamp(previous: datetime | None) -> datetime:
    """Return now, or one microsecond past ``previous`` if the clock has not moved on."""
    now = utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


class Filament(Base):
    """One spool line in the inventory."""

    __tablename__ = "filaments"
    __table_args__ = (Index("ix_filaments_brand_color", "brand", "color"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    brand: Mapped[str] = mapped_column(String(100))
    color: Mapped[str] = mapped_column(String(100))
    type: Mapped[str] = mapped_column(String(50))  # Basic, Matte, Silk, ...
    material: Mapped[str] = mapped_column(String(50))  # PLA, PETG, ABS, ...
    amount: Mapped[float] = mapped_column(Float, default=0)  # Spool fraction, 1.0 = full spool
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
