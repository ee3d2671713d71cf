from typing import Iterable

from ..errors import AuthorizationError
from .site_registry import ApiClient, SiteRegistry


def require_admin_access(registry: SiteRegistry, client: ApiClient, site_ids: Iterable[int]):
    """
    Raise AuthorizationError unless the client is admin for every given site.
    - Superuser clients (no site restriction) may change any site.
    - Restricted clients may only change the sites listed for their key.
    """
    site_ids = set(site_ids)
    if not site_ids or client.is_superuser:
        return

    allowed = registry.list_site_ids_with_admin_access(client)
    denied = site_ids - allowed
    if denied:
        raise AuthorizationError(denied)


def admin_authorizer(registry: SiteRegistry, client: ApiClient):
    """Bind require_admin_access to a caller, for the store's bulk operations."""
    def authorize(site_ids):
        require_admin_access(registry, client, site_ids)
    return authorize
