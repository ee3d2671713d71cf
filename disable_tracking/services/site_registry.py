from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..models.site import Site


@dataclass(frozen=True)
class ApiClient:
    """An authenticated API caller. site_ids=None means admin of every site."""
    name: str
    site_ids: Optional[frozenset] = None

    @property
    def is_superuser(self) -> bool:
        return self.site_ids is None


class SiteRegistry:
    """Lookups against the site table. Sites are owned by the registry, never by the store."""

    def __init__(self, db: Session):
        self.db = db

    def site_exists(self, site_id: int) -> bool:
        return self.db.query(Site.id).filter(Site.id == site_id).first() is not None

    def list_all_sites(self) -> list[Site]:
        return self.db.query(Site).order_by(Site.name.asc(), Site.id.asc()).all()

    def missing_site_ids(self, site_ids: Iterable[int]) -> set[int]:
        wanted = set(site_ids)
        if not wanted:
            return set()
        found = {row.id for row in self.db.query(Site.id).filter(Site.id.in_(wanted))}
        return wanted - found

    def list_site_ids_with_admin_access(self, client: ApiClient) -> set[int]:
        all_ids = {row.id for row in self.db.query(Site.id)}
        if client.is_superuser:
            return all_ids
        return all_ids & set(client.site_ids)
