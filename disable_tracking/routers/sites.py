from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from ..models.site import Site
from ..schemas.site import SiteCreate, SiteOut
from ..dependencies import get_db, get_store
from ..services.disable_store import DisableStateStore
import logging

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/", response_model=SiteOut)
def create_site(payload: SiteCreate, db: Session = Depends(get_db)):
    site = Site(**payload.model_dump())
    db.add(site)
    db.commit()
    db.refresh(site)
    logger.info(f"➕ Site {site.id} created: {site.name}")
    return site

@router.get("/", response_model=list[SiteOut])
def list_sites(db: Session = Depends(get_db)):
    return db.query(Site).order_by(Site.name.asc()).all()

# Get single site by ID
@router.get("/{site_id}", response_model=SiteOut)
def get_site(site_id: int, db: Session = Depends(get_db)):
    site = db.query(Site).filter(Site.id == site_id).first()
    if not site:
        raise HTTPException(status_code=404, detail="Site not found")
    return site

# Delete site
@router.delete("/{site_id}")
def delete_site(site_id: int, db: Session = Depends(get_db), store: DisableStateStore = Depends(get_store)):
    site = db.query(Site).filter(Site.id == site_id).first()
    if not site:
        raise HTTPException(status_code=404, detail="Site not found")
    # Close the disable record while the site still exists, otherwise it
    # would stay in the disabled set with no site to validate against.
    store.enable(site_id)
    db.delete(site)
    db.commit()
    return {"message": "Site deleted"}
