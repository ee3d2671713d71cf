from pydantic import BaseModel, ConfigDict
from datetime import datetime

class TrackingEventOut(BaseModel):
    id: int
    site_id: int
    url: str | None = None
    action_name: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
