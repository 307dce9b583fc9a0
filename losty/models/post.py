# losty/models/post.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from losty.utils.datetime_utils import DateTimeUtils

class PostStatus(Enum):
    ACTIVE = "active"
    CLAIMED = "claimed"

class PostType(Enum):
    LOST = "LOST"
    FOUND = "FOUND"

@dataclass
class Post:
    """
    Firestore 'posts' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    분실물(LOST) 또는 습득물(FOUND) 게시글 하나를 나타냅니다.
    """
    post_id: str
    title: str
    description: str
    category: str
    location: str
    author_id: str
    author_name: str = ""
    author_image_url: str = ""
    image_urls: List[str] = field(default_factory=list)
    status: PostStatus = PostStatus.ACTIVE
    type: PostType = PostType.LOST
    created_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> "Post":
        """
        Firestore 문서 딕셔너리로부터 Post 인스턴스를 생성합니다.
        누락된 필드는 기본값으로 채웁니다.
        """
        status_str = data.get('status') or PostStatus.ACTIVE.value
        try:
            status = PostStatus(str(status_str).lower())
        except ValueError:
            logging.warning(f"Invalid post status '{status_str}' for post {doc_id}. Defaulting to active.")
            status = PostStatus.ACTIVE

        type_str = data.get('type') or PostType.LOST.value
        try:
            post_type = PostType(str(type_str).upper())
        except ValueError:
            logging.warning(f"Invalid post type '{type_str}' for post {doc_id}. Defaulting to LOST.")
            post_type = PostType.LOST

        return cls(
            post_id=data.get('post_id') or doc_id or "",
            title=data.get('title') or "",
            description=data.get('description') or "",
            category=data.get('category') or "",
            location=data.get('location') or "",
            author_id=data.get('author_id') or "",
            author_name=data.get('author_name') or "",
            author_image_url=data.get('author_image_url') or "",
            image_urls=[url for url in (data.get('image_urls') or []) if isinstance(url, str)],
            status=status,
            type=post_type,
            created_at=DateTimeUtils.coerce_datetime(data.get('created_at')),
        )

    @property
    def is_active(self) -> bool:
        return self.status == PostStatus.ACTIVE
