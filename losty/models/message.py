# losty/models/message.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any

from losty.utils.datetime_utils import DateTimeUtils

@dataclass
class Message:
    """
    Firestore 'messages' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    conversation_id로 대화방과 연결됩니다.
    """
    message_id: str
    conversation_id: str
    sender_id: str
    text: str
    sender_name: str = ""
    read: bool = False
    timestamp: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> "Message":
        return cls(
            message_id=data.get('message_id') or doc_id or "",
            conversation_id=data.get('conversation_id') or "",
            sender_id=data.get('sender_id') or "",
            text=data.get('text') or "",
            sender_name=data.get('sender_name') or "",
            read=bool(data.get('read', False)),
            timestamp=DateTimeUtils.coerce_datetime(data.get('timestamp')),
        )
