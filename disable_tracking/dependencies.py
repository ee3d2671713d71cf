from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .services.access_control import admin_authorizer
from .services.decision_cache import DecisionCache
from .services.disable_store import DisableStateStore
from .services.site_id_decoder import SiteIdDecoder
from .services.site_registry import ApiClient, SiteRegistry


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_decision_cache(request: Request) -> DecisionCache:
    return request.app.state.decision_cache


def get_decoder(request: Request) -> SiteIdDecoder:
    return request.app.state.site_id_decoder


def get_site_registry(db: Session = Depends(get_db)) -> SiteRegistry:
    return SiteRegistry(db)


def get_store(
    request: Request,
    db: Session = Depends(get_db),
    cache: DecisionCache = Depends(get_decision_cache),
    sites: SiteRegistry = Depends(get_site_registry),
) -> DisableStateStore:
    return DisableStateStore(
        db,
        cache=cache,
        sites=sites,
        history_mode=request.app.state.settings.DISABLE_HISTORY_MODE,
    )


def get_client(request: Request) -> ApiClient:
    # Set by api_key_middleware for every protected route
    return request.state.client


def get_authorizer(
    sites: SiteRegistry = Depends(get_site_registry),
    client: ApiClient = Depends(get_client),
):
    return admin_authorizer(sites, client)
