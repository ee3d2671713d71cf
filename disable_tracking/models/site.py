from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from ..database import Base

class Site(Base):
    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)  # display label, listings sort on it
    main_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
