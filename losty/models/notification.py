# losty/models/notification.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from losty.utils.datetime_utils import DateTimeUtils

class NotificationType(Enum):
    """알림 유형을 정의하는 Enum 클래스"""
    CLAIM_REQUEST = "CLAIM_REQUEST"
    CLAIM_APPROVED = "CLAIM_APPROVED"
    CLAIM_DENIED = "CLAIM_DENIED"

@dataclass
class Notification:
    """
    Firestore 'users/{uid}/notifications' 서브컬렉션의 문서 구조를 정의하는 데이터클래스.
    """
    notification_id: str
    type: NotificationType
    from_user_id: str          # 알림을 유발한 사용자 ID
    from_user_name: str
    message: str
    post_id: str = ""
    claim_id: str = ""
    is_read: bool = False
    timestamp: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> "Notification":
        type_str = data.get('type') or NotificationType.CLAIM_REQUEST.value
        try:
            n_type = NotificationType(type_str)
        except ValueError:
            logging.warning(f"Unknown notification type '{type_str}' ({doc_id}). Defaulting to CLAIM_REQUEST.")
            n_type = NotificationType.CLAIM_REQUEST

        return cls(
            notification_id=data.get('notification_id') or doc_id or "",
            type=n_type,
            from_user_id=data.get('from_user_id') or "",
            from_user_name=data.get('from_user_name') or "",
            message=data.get('message') or "",
            post_id=data.get('post_id') or "",
            claim_id=data.get('claim_id') or "",
            is_read=bool(data.get('is_read', False)),
            timestamp=DateTimeUtils.coerce_datetime(data.get('timestamp')),
        )
