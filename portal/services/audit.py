import logging
from typing import Optional, Any, Dict

from django.contrib.auth import get_user_model

from portal.models import ActivityLog

User = get_user_model()
logger = logging.getLogger(__name__)


def log_action(*, user: Optional[User], action: str, description: str, object_type: Optional[str]=None,
               object_id=None, detail: Optional[Dict[str, Any]]=None) -> ActivityLog:
    logger.info('%s by user=%s: %s', action, getattr(user, 'id', None), description)
    return ActivityLog.objects.create(
        user=user if isinstance(user, User) and getattr(user, 'pk', None) else None,
        action=action,
        description=description,
        object_type=object_type,
        object_id=str(object_id) if object_id is not None else None,
        detail=detail or {},
    )


def recent_activity(limit: int = 10) -> list[ActivityLog]:
    return list(ActivityLog.objects.select_related('user').order_by('-created_at', '-id')[:limit])


def format_activity(log: ActivityLog) -> dict:
    return {
        'id': log.id,
        'userId': log.user_id,
        'userName': (log.user.name or log.user.username) if log.user else None,
        'action': log.action,
        'description': log.description,
        'objectType': log.object_type,
        'objectId': log.object_id,
        'timestamp': log.created_at.isoformat(),
    }
