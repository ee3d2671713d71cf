from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from .config import settings

db_url = settings.DB_URL

# sqlite connections are shared between the request worker threads and the
# gate's thread-pool lookups.
connect_args = {}
if db_url.startswith("sqlite"):
	connect_args = {"check_same_thread": False}

engine = create_engine(db_url, connect_args=connect_args, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False)
Base = declarative_base()
