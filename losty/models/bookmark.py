# losty/models/bookmark.py
from dataclasses import dataclass, field
from datetime import datetime

from losty.utils.datetime_utils import DateTimeUtils

@dataclass
class Bookmark:
    """
    Firestore 'bookmarks' 컬렉션의 문서 구조.
    문서 ID는 f"{user_id}_{post_id}" 형식으로 사용자당 게시물 하나에 하나만 존재합니다.
    """
    user_id: str
    post_id: str
    created_at: datetime = field(default_factory=DateTimeUtils.now)

    @staticmethod
    def make_id(user_id: str, post_id: str) -> str:
        return f"{user_id}_{post_id}"
