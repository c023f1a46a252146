import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from esperto.logging_config import mask_sensitive_data
from esperto.models import AdminAuditLog

logger = logging.getLogger(__name__)


def log_admin_action(
    db: Session,
    action_type: str,
    admin_id: Optional[str] = None,
    target_user_id: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> None:
    """Store a masked audit entry. Failures are logged, never raised."""
    try:
        db.add(AdminAuditLog(
            admin_id=admin_id,
            action_type=action_type,
            target_user_id=target_user_id,
            details=mask_sensitive_data(details) or None
        ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Failed to log admin action {action_type}: {e}")
