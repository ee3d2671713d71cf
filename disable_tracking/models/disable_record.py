from dataclasses import dataclass
from datetime import datetime
from typing import Union

from sqlalchemy import Column, Integer, DateTime, Index
from ..database import Base

TABLE_NAME = "disable_site_tracking"


@dataclass(frozen=True)
class OpenInterval:
    """Tracking is currently disabled for the site."""
    site_id: int
    created_at: datetime


@dataclass(frozen=True)
class ClosedInterval:
    """A past disable interval, ended when tracking was re-enabled."""
    site_id: int
    created_at: datetime
    closed_at: datetime


DisableInterval = Union[OpenInterval, ClosedInterval]


class DisableRecord(Base):
    __tablename__ = TABLE_NAME

    id = Column(Integer, primary_key=True, autoincrement=True)
    site_id = Column("siteId", Integer, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)  # NULL = currently disabled

    def to_interval(self) -> DisableInterval:
        if self.deleted_at is None:
            return OpenInterval(site_id=self.site_id, created_at=self.created_at)
        return ClosedInterval(
            site_id=self.site_id,
            created_at=self.created_at,
            closed_at=self.deleted_at,
        )


# At most one open record per site. Only dialects with partial indexes get it,
# elsewhere a plain unique index on siteId would forbid the closed history rows.
Index(
    "uq_disable_site_tracking_open",
    DisableRecord.site_id,
    unique=True,
    sqlite_where=DisableRecord.deleted_at.is_(None),
    postgresql_where=DisableRecord.deleted_at.is_(None),
).ddl_if(dialect=("sqlite", "postgresql"))
