"""Admin API - view and change which sites have tracking disabled."""
from fastapi import APIRouter, Depends
from ..schemas.admin import (
    ChangeResult,
    DisableIntervalOut,
    SaveRequest,
    SaveResult,
    SiteHistoryOut,
    SiteIdsRequest,
    SiteStateOut,
)
from ..dependencies import get_authorizer, get_store
from ..errors import InvalidSiteError
from ..models.disable_record import ClosedInterval
from ..services.disable_store import DisableStateStore

router = APIRouter()


@router.get("/sites", response_model=list[SiteStateOut])
def list_site_states(store: DisableStateStore = Depends(get_store)):
    """
    List every site, ordered by label, with its tracking state.

    Returns:
        [{"id": 1, "label": "...", "url": "...", "disabled": false}, ...]
    """
    return store.list_sites_with_state()


@router.post("/save", response_model=SaveResult)
def save(payload: SaveRequest, store: DisableStateStore = Depends(get_store), authorize=Depends(get_authorizer)):
    """
    Save the admin form. Checked sites end up disabled, every other site
    ends up enabled.

    Returns:
        {"enabled": [...], "disabled": [...]} - the sites that changed
    """
    checked = {toggle.site_id for toggle in payload.sites if toggle.checked}
    enabled, disabled = store.set_disabled_set(checked, authorize=authorize)
    return SaveResult(enabled=enabled, disabled=disabled)


@router.post("/sites/disable", response_model=ChangeResult)
def disable_sites(payload: SiteIdsRequest, store: DisableStateStore = Depends(get_store), authorize=Depends(get_authorizer)):
    """Disable tracking for the given sites."""
    changed = store.change_disable_state(payload.site_ids, True, authorize=authorize)
    return ChangeResult(changed=changed, disabled=True)


@router.post("/sites/enable", response_model=ChangeResult)
def enable_sites(payload: SiteIdsRequest, store: DisableStateStore = Depends(get_store), authorize=Depends(get_authorizer)):
    """Re-enable tracking for the given sites."""
    changed = store.change_disable_state(payload.site_ids, False, authorize=authorize)
    return ChangeResult(changed=changed, disabled=False)


@router.get("/sites/{site_id}", response_model=SiteHistoryOut)
def site_state(site_id: int, store: DisableStateStore = Depends(get_store)):
    """Current state of one site and its disable history, oldest first."""
    if not store.sites.site_exists(site_id):
        raise InvalidSiteError(site_id)
    history = [
        DisableIntervalOut(
            created_at=interval.created_at,
            closed_at=interval.closed_at if isinstance(interval, ClosedInterval) else None,
        )
        for interval in store.history(site_id)
    ]
    return SiteHistoryOut(site_id=site_id, disabled=store.is_disabled(site_id), history=history)
