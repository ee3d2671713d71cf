import logging
from sqlalchemy.orm import Session
from datetime import datetime, timedelta, timezone
from ..models.disable_record import DisableRecord

logger = logging.getLogger(__name__)


def purge_closed_records(db: Session, retention_days: int) -> int:
    """Delete closed disable records older than the retention window. Open records are kept."""
    if retention_days <= 0:
        return 0

    limit_date = datetime.now(timezone.utc) - timedelta(days=retention_days)

    deleted = db.query(DisableRecord).filter(
        DisableRecord.deleted_at.is_not(None),
        DisableRecord.deleted_at < limit_date,
    ).delete(synchronize_session=False)

    db.commit()
    logger.info(f"🧹 Purged {deleted} closed disable records older than {retention_days} days")
    return deleted
