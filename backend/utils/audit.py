import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from models.log import Log

logger = logging.getLogger(__name__)

def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", ip=None, meta=None, order_id=None):
    """Store an audit entry in its own commit, after the business change."""
    entry = Log(user_id=user_id, action=action, resource=resource, status=status, ip=ip,
                order_id=order_id, meta=meta or {})
    db.add(entry)
    try:
        db.commit()
    except SQLAlchemyError:
        # Audit rows must never break the request that produced them
        db.rollback()
        logger.exception("Failed to write audit log %s/%s", resource, action)
    return entry
