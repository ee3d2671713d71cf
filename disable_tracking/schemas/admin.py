from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional

class SiteStateOut(BaseModel):
    id: int
    label: str
    url: Optional[str] = None
    disabled: bool

    model_config = ConfigDict(from_attributes=True)

class SiteToggle(BaseModel):
    """One checkbox of the admin form."""
    site_id: int
    checked: bool = False

class SaveRequest(BaseModel):
    sites: List[SiteToggle]

class SaveResult(BaseModel):
    enabled: List[int]
    disabled: List[int]

class SiteIdsRequest(BaseModel):
    site_ids: List[int]

class ChangeResult(BaseModel):
    changed: List[int]
    disabled: bool

class DisableIntervalOut(BaseModel):
    created_at: datetime
    closed_at: Optional[datetime] = None  # None while the interval is open

class SiteHistoryOut(BaseModel):
    site_id: int
    disabled: bool
    history: List[DisableIntervalOut]
