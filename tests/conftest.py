import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from disable_tracking.config import Settings
from disable_tracking.database import Base
from disable_tracking.main import create_app
from disable_tracking.middleware import add_api_key, remove_api_key
from disable_tracking.models.site import Site
from disable_tracking.services.decision_cache import LocalDecisionCache
from disable_tracking.services.disable_store import DisableStateStore, make_store_loader
from disable_tracking.services.site_registry import ApiClient, SiteRegistry

ADMIN_KEY = "test-admin-key"
LIMITED_KEY = "test-limited-key"


class TestSettings(Settings):
    __test__ = False

    DB_URL = "sqlite://"
    DISABLE_HISTORY_MODE = "soft"
    DISABLE_HISTORY_RETENTION_DAYS = 0
    DECISION_CACHE_BACKEND = "local"
    GATE_ON_STORAGE_ERROR = "allow"
    GATE_ON_INVALID_SITE_ID = "allow"
    TRACKING_PATHS = ["/track"]
    SITE_ID_PARAM = "idsite"
    SITE_ID_DECODER = "disable_tracking.services.site_id_decoder.IntegerSiteIdDecoder"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    # Listed by name: Alpha Shop (2), Beta Blog (1), Gamma News (3)
    session.add_all([
        Site(id=1, name="Beta Blog", main_url="https://beta.example"),
        Site(id=2, name="Alpha Shop", main_url="https://alpha.example"),
        Site(id=3, name="Gamma News", main_url="https://gamma.example"),
    ])
    session.commit()
    yield session
    session.close()


@pytest.fixture
def cache(session_factory):
    return LocalDecisionCache(make_store_loader(session_factory))


@pytest.fixture
def store(db, cache):
    return DisableStateStore(db, cache=cache, sites=SiteRegistry(db))


@pytest.fixture
def settings():
    return TestSettings()


@pytest.fixture
def app(session_factory, settings, cache, db):
    return create_app(session_factory=session_factory, settings=settings, decision_cache=cache)


@pytest.fixture
def client(app):
    add_api_key(ADMIN_KEY, ApiClient("Test Admin"))
    add_api_key(LIMITED_KEY, ApiClient("Blog Owner", frozenset({1})))
    yield TestClient(app)
    remove_api_key(ADMIN_KEY)
    remove_api_key(LIMITED_KEY)


@pytest.fixture
def admin_headers():
    return {"X-API-Key": ADMIN_KEY}


@pytest.fixture
def limited_headers():
    return {"Authorization": f"Bearer {LIMITED_KEY}"}
