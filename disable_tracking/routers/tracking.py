from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from ..models.tracking_event import TrackingEvent
from ..schemas.event import TrackingEventOut
from ..dependencies import get_db, get_decoder
from ..errors import DecodeError
from ..services.site_id_decoder import SiteIdDecoder
import logging

router = APIRouter()
logger = logging.getLogger(__name__)

@router.api_route("/track", methods=["GET", "POST"], response_model=TrackingEventOut)
def track(
    request: Request,
    url: str | None = None,
    action_name: str | None = None,
    db: Session = Depends(get_db),
    decoder: SiteIdDecoder = Depends(get_decoder),
):
    """
    Record one tracking event.
    Requests for disabled sites never get here, tracking_gate_middleware
    answers them first.
    """
    idsite = request.query_params.get(request.app.state.settings.SITE_ID_PARAM)
    if idsite is None:
        raise HTTPException(status_code=400, detail="Missing idsite")

    try:
        site_id = decoder.decode(idsite)
    except (DecodeError, ValueError):
        raise HTTPException(status_code=400, detail=f"Malformed idsite: {idsite}")

    event = TrackingEvent(
        site_id=site_id,
        url=url,
        action_name=action_name,
        client_ip=request.client.host if request.client else None,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.debug(f"Tracking event {event.id} recorded for site {site_id}")
    return event
