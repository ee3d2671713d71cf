import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name) or default
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings:
    # If DB_URL is not provided, fall back to a local sqlite file so the service
    # can be run without a database server.
    DB_URL: str = os.getenv("DB_URL") or "sqlite:///./dev.db"

    PROJECT_NAME: str = os.getenv("PROJECT_NAME") or "Disable Tracking API"

    # "soft" closes a record by stamping deleted_at (keeps the audit trail),
    # "delete" removes the site's rows outright when tracking is re-enabled.
    DISABLE_HISTORY_MODE: str = (os.getenv("DISABLE_HISTORY_MODE") or "soft").lower()

    # Closed records older than this are purged daily. 0 keeps history forever.
    DISABLE_HISTORY_RETENTION_DAYS: int = int(os.getenv("DISABLE_HISTORY_RETENTION_DAYS") or 0)

    # "local" is a per-process cache, only correct with a single serving
    # instance. Use "redis" when several instances serve tracking traffic.
    DECISION_CACHE_BACKEND: str = (os.getenv("DECISION_CACHE_BACKEND") or "local").lower()
    DECISION_CACHE_PREFIX: str = os.getenv("DECISION_CACHE_PREFIX") or "DisableTracking_"
    REDIS_URL: Optional[str] = os.getenv("REDIS_URL") or None

    # Gate policies: "allow" lets the tracking request through, "block" drops it.
    GATE_ON_STORAGE_ERROR: str = (os.getenv("GATE_ON_STORAGE_ERROR") or "allow").lower()
    GATE_ON_INVALID_SITE_ID: str = (os.getenv("GATE_ON_INVALID_SITE_ID") or "allow").lower()

    TRACKING_PATHS: list[str] = _env_list("TRACKING_PATHS", "/track")
    SITE_ID_PARAM: str = os.getenv("SITE_ID_PARAM") or "idsite"

    SITE_ID_DECODER: str = (
        os.getenv("SITE_ID_DECODER")
        or "disable_tracking.services.site_id_decoder.IntegerSiteIdDecoder"
    )


settings = Settings()
