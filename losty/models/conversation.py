# losty/models/conversation.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any

from losty.utils.datetime_utils import DateTimeUtils

@dataclass
class Conversation:
    """
    Firestore 'conversations' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    게시물 하나를 두고 두 사용자가 나누는 대화방입니다.
    - participants: array-contains 쿼리를 위해 두 참여자 ID를 함께 저장
    """
    conversation_id: str
    post_id: str
    participant1_id: str
    participant2_id: str
    post_title: str = ""
    post_image_url: str = ""
    participant1_name: str = ""
    participant2_name: str = ""
    participants: List[str] = field(default_factory=list)
    last_message: str = ""
    last_message_time: datetime = field(default_factory=DateTimeUtils.now)
    unread_count: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> "Conversation":
        participants = [p for p in (data.get('participants') or []) if isinstance(p, str)]
        return cls(
            conversation_id=data.get('conversation_id') or doc_id or "",
            post_id=data.get('post_id') or "",
            participant1_id=data.get('participant1_id') or "",
            participant2_id=data.get('participant2_id') or "",
            post_title=data.get('post_title') or "",
            post_image_url=data.get('post_image_url') or "",
            participant1_name=data.get('participant1_name') or "",
            participant2_name=data.get('participant2_name') or "",
            participants=participants,
            last_message=data.get('last_message') or "",
            last_message_time=DateTimeUtils.coerce_datetime(data.get('last_message_time')),
            unread_count=int(data.get('unread_count') or 0),
        )

    def has_participant(self, user_id: str) -> bool:
        return user_id in self.participants

    def other_participant(self, user_id: str) -> str:
        """user_id가 아닌 상대방 참여자 ID를 반환합니다."""
        return self.participant2_id if user_id == self.participant1_id else self.participant1_id
