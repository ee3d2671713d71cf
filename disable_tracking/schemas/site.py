from pydantic import BaseModel, ConfigDict
from datetime import datetime

class SiteBase(BaseModel):
    name: str
    main_url: str | None = None

class SiteCreate(SiteBase):
    pass

class SiteOut(SiteBase):
    id: int
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
