# losty/api/bookmarks/services.py
import logging
from dataclasses import asdict
from typing import List
from firebase_admin import firestore

from losty.models.bookmark import Bookmark
from losty.utils.datetime_utils import DateTimeUtils

class BookmarkService:
    """
    게시물 북마크를 관리합니다.
    문서 ID를 '{user_id}_{post_id}'로 고정해 같은 게시물이 중복 저장되지 않도록 합니다.
    """
    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.bookmarks_ref = self.db.collection('bookmarks')

    def toggle_bookmark(self, user_id: str, post_id: str) -> bool:
        """북마크가 있으면 지우고 없으면 만듭니다. 변경 후 북마크 여부를 반환합니다."""
        bookmark_ref = self.bookmarks_ref.document(Bookmark.make_id(user_id, post_id))
        if bookmark_ref.get().exists:
            bookmark_ref.delete()
            logging.info(f"북마크 해제 (user_id: {user_id}, post_id: {post_id})")
            return False

        bookmark = Bookmark(user_id=user_id, post_id=post_id, created_at=DateTimeUtils.now())
        bookmark_ref.set(DateTimeUtils.for_firestore(asdict(bookmark)))
        logging.info(f"북마크 추가 (user_id: {user_id}, post_id: {post_id})")
        return True

    def get_bookmarked_post_ids(self, user_id: str) -> List[str]:
        """북마크한 게시물 ID 목록 (최근 북마크 순)"""
        docs = self.bookmarks_ref.where('user_id', '==', user_id).stream()
        rows = [doc.to_dict() or {} for doc in docs]
        rows.sort(key=lambda row: DateTimeUtils.coerce_datetime(row.get('created_at')), reverse=True)
        return [row['post_id'] for row in rows if row.get('post_id')]
