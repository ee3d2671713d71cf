"""
Disable-state store: durable bookkeeping of per-site tracking disable/enable
transitions in the disable_site_tracking table.

A site is disabled iff it has an open record (deleted_at IS NULL). Re-enabling
either closes the open record (soft history mode, keeps the audit trail) or
deletes the site's rows (delete mode). Every write commits first and then
invalidates the site's cached decision.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import InvalidSiteError, StorageError
from ..models.disable_record import DisableRecord, DisableInterval
from .decision_cache import DecisionCache
from .site_registry import SiteRegistry

logger = logging.getLogger(__name__)

HISTORY_MODES = ("soft", "delete")

Authorizer = Callable[[set], None]


@dataclass(frozen=True)
class SiteState:
    id: int
    label: str
    url: Optional[str]
    disabled: bool


def is_table_exists_error(exc: Exception) -> bool:
    """True if a CREATE TABLE failed only because the table is already there."""
    orig = getattr(exc, "orig", None) or exc
    args = getattr(orig, "args", ())
    if args and args[0] == 1050:  # MySQL ER_TABLE_EXISTS_ERROR
        return True
    if getattr(orig, "pgcode", None) == "42P07":  # PostgreSQL duplicate_table
        return True
    return "already exists" in str(orig).lower()


class DisableStateStore:

    def __init__(
        self,
        db: Session,
        cache: Optional[DecisionCache] = None,
        sites: Optional[SiteRegistry] = None,
        history_mode: str = "soft",
    ):
        if history_mode not in HISTORY_MODES:
            raise ValueError(f"Unknown history mode: {history_mode}")
        self.db = db
        self.cache = cache
        self.sites = sites
        self.history_mode = history_mode

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @contextmanager
    def _storage(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Storage error while {action}: {e}")
            raise StorageError(f"Disable-state storage error while {action}") from e

    def _open_records(self, site_id: int):
        return self.db.query(DisableRecord).filter(
            DisableRecord.site_id == site_id,
            DisableRecord.deleted_at.is_(None),
        )

    def _invalidate(self, site_id: int):
        if self.cache is not None:
            self.cache.invalidate(site_id)

    def _missing_sites(self, site_ids: Iterable[int]) -> set[int]:
        site_ids = set(site_ids)
        if not site_ids:
            return set()
        if self.sites is None:
            raise RuntimeError("A site registry is required for write operations")
        with self._storage("validating sites"):
            return self.sites.missing_site_ids(site_ids)

    def _validate_sites(self, site_ids: Iterable[int]):
        missing = self._missing_sites(site_ids)
        if missing:
            raise InvalidSiteError(missing)

    # Reads

    def is_disabled(self, site_id: int) -> bool:
        with self._storage(f"reading state of site {site_id}"):
            return self._open_records(site_id).first() is not None

    def cached_state(self, site_id: int) -> Optional[bool]:
        """is_disabled, or None for an enabled site the registry does not know."""
        if self.is_disabled(site_id):
            return True
        if self.sites is None:
            return False
        with self._storage(f"looking up site {site_id}"):
            exists = self.sites.site_exists(site_id)
        return False if exists else None

    def disabled_site_ids(self) -> set[int]:
        with self._storage("listing disabled sites"):
            rows = (
                self.db.query(DisableRecord.site_id)
                .filter(DisableRecord.deleted_at.is_(None))
                .distinct()
            )
            return {row.site_id for row in rows}

    def history(self, site_id: int) -> list[DisableInterval]:
        with self._storage(f"reading history of site {site_id}"):
            records = (
                self.db.query(DisableRecord)
                .filter(DisableRecord.site_id == site_id)
                .order_by(DisableRecord.created_at.asc(), DisableRecord.id.asc())
                .all()
            )
            return [r.to_interval() for r in records]

    def list_sites_with_state(self) -> list[SiteState]:
        """All registry sites ordered by label, with their current disabled flag."""
        if self.sites is None:
            raise RuntimeError("A site registry is required to list sites")
        disabled = self.disabled_site_ids()
        with self._storage("listing sites"):
            sites = self.sites.list_all_sites()
        return [
            SiteState(id=s.id, label=s.name, url=s.main_url, disabled=s.id in disabled)
            for s in sites
        ]

    # Writes

    def _disable(self, site_id: int) -> bool:
        changed = False
        with self._storage(f"disabling site {site_id}"):
            if self._open_records(site_id).first() is None:
                self.db.add(DisableRecord(site_id=site_id, created_at=self._now()))
                try:
                    self.db.commit()
                    changed = True
                except IntegrityError:
                    # A concurrent writer opened the record first; same end state.
                    self.db.rollback()
                    logger.info(f"Site {site_id} was disabled concurrently, skipping insert")
        self._invalidate(site_id)
        return changed

    def _enable(self, site_id: int) -> bool:
        changed = False
        with self._storage(f"enabling site {site_id}"):
            if self._open_records(site_id).first() is not None:
                if self.history_mode == "delete":
                    self.db.query(DisableRecord).filter(
                        DisableRecord.site_id == site_id
                    ).delete(synchronize_session=False)
                else:
                    self._open_records(site_id).update(
                        {DisableRecord.deleted_at: self._now()},
                        synchronize_session=False,
                    )
                self.db.commit()
                changed = True
        self._invalidate(site_id)
        return changed

    def disable(self, site_id: int) -> bool:
        """Disable tracking for a site. Returns False if it already was disabled."""
        self._validate_sites([site_id])
        changed = self._disable(site_id)
        if changed:
            logger.info(f"🚫 Tracking disabled for site {site_id}")
        return changed

    def enable(self, site_id: int) -> bool:
        """Re-enable tracking for a site. Returns False if it was not disabled."""
        self._validate_sites([site_id])
        changed = self._enable(site_id)
        if changed:
            logger.info(f"✅ Tracking enabled for site {site_id}")
        return changed

    def set_disabled_set(self, site_ids: Iterable[int], authorize: Optional[Authorizer] = None):
        """
        Make the disabled set exactly site_ids.

        Only sites whose state changes are written. Sites to disable must
        exist, and changed sites are authorized (when authorize is given)
        before the first write, so a failure leaves the table untouched.
        Open records of sites no longer in the registry are closed without
        either check.

        Returns:
            (enabled_ids, disabled_ids) as sorted lists
        """
        target = {int(s) for s in site_ids}
        current = self.disabled_site_ids()
        to_enable = current - target
        to_disable = target - current
        changed = to_enable | to_disable

        orphans = self._missing_sites(to_enable)
        self._validate_sites(to_disable)
        if authorize is not None:
            authorize(changed - orphans)
        if orphans:
            logger.warning(f"Closing disable records of unknown sites {sorted(orphans)}")

        for site_id in sorted(to_enable):
            self._enable(site_id)
        for site_id in sorted(to_disable):
            self._disable(site_id)

        logger.info(
            f"Disabled set saved: enabled {sorted(to_enable)}, disabled {sorted(to_disable)}"
        )
        return sorted(to_enable), sorted(to_disable)

    def change_disable_state(
        self,
        site_ids: Iterable[int],
        disabled: bool,
        authorize: Optional[Authorizer] = None,
    ) -> list[int]:
        """Disable or enable an explicit list of sites. Returns the ids that changed."""
        ids = {int(s) for s in site_ids}
        self._validate_sites(ids)
        if authorize is not None:
            authorize(ids)

        apply = self._disable if disabled else self._enable
        changed = [site_id for site_id in sorted(ids) if apply(site_id)]
        logger.info(f"{'Disabled' if disabled else 'Enabled'} tracking for sites {changed}")
        return changed

    # Schema

    def install(self):
        """Create the table. An existing table (e.g. a concurrent install) is not an error."""
        try:
            DisableRecord.__table__.create(bind=self.db.get_bind())
            logger.info(f"✅ Created table {DisableRecord.__tablename__}")
        except SQLAlchemyError as e:
            if not is_table_exists_error(e):
                raise
            logger.info(f"Table {DisableRecord.__tablename__} already exists")

    def uninstall(self):
        DisableRecord.__table__.drop(bind=self.db.get_bind(), checkfirst=True)
        if self.cache is not None:
            self.cache.clear()
        logger.info(f"🗑️ Dropped table {DisableRecord.__tablename__}")


def make_store_loader(session_factory) -> Callable[[int], Optional[bool]]:
    """Cache loader that answers each miss from the store in a fresh session."""
    def load(site_id: int) -> Optional[bool]:
        with session_factory() as db:
            return DisableStateStore(db, sites=SiteRegistry(db)).cached_state(site_id)
    return load
