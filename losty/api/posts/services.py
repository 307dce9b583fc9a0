# losty/api/posts/services.py
import logging
import uuid
from dataclasses import asdict
from typing import Optional, Dict, Any, List
from firebase_admin import firestore

from losty.models.post import Post, PostStatus, PostType
from losty.services.storage_service import StorageService
from losty.api.users.services import UserService
from losty.utils.datetime_utils import DateTimeUtils

class PostService:
    """
    분실물/습득물 게시글 관련 비즈니스 로직을 담당하는 서비스 클래스.
    """
    EDITABLE_FIELDS = ('title', 'description', 'category', 'location')

    def __init__(self, storage_service: StorageService, user_service: UserService, db=None):
        self.db = db or firestore.client()
        self.posts_ref = self.db.collection('posts')
        self.storage_service = storage_service
        self.user_service = user_service

    def feed_query(self):
        """전체 게시글을 최신순으로 조회하는 쿼리. 일회성 조회와 실시간 스트림이 함께 사용합니다."""
        return self.posts_ref.order_by('created_at', direction=firestore.Query.DESCENDING)

    @staticmethod
    def filter_feed(posts: List[Post], post_type: Optional[PostType] = None) -> List[Post]:
        """피드에는 active 상태인 게시글만 노출합니다."""
        return [
            post for post in posts
            if post.is_active and (post_type is None or post.type == post_type)
        ]

    def get_feed(self, post_type: Optional[PostType] = None) -> List[Post]:
        docs = self.feed_query().stream()
        posts = [Post.from_dict(doc.to_dict(), doc.id) for doc in docs]
        return self.filter_feed(posts, post_type)

    def get_posts_by_author(self, author_id: str) -> List[Post]:
        """특정 사용자가 작성한 게시글 전체(상태 무관)를 최신순으로 조회합니다."""
        docs = self.posts_ref.where('author_id', '==', author_id).stream()
        posts = [Post.from_dict(doc.to_dict(), doc.id) for doc in docs]
        # 복합 인덱스 없이 조회하기 위해 정렬은 메모리에서 수행
        return sorted(posts, key=lambda p: p.created_at, reverse=True)

    def get_post(self, post_id: str) -> Optional[Post]:
        doc = self.posts_ref.document(post_id).get()
        if not doc.exists:
            return None
        return Post.from_dict(doc.to_dict(), doc.id)

    def _get_owned_post(self, post_id: str, user_id: str) -> Post:
        post = self.get_post(post_id)
        if not post:
            raise ValueError("Post not found.")
        if post.author_id != user_id:
            raise PermissionError("게시글을 수정/삭제할 권한이 없습니다.")
        return post

    def create_post(self, user_id: str, title: str, description: str, category: str, location: str,
                    file_paths: List[str], post_type: PostType = PostType.LOST) -> Post:
        """
        새 게시글을 생성합니다.
        1. 업로드된 이미지를 공개로 전환하고 URL을 수집
        2. 작성자 프로필(이름, 사진)을 게시글에 복사
        3. Firestore에 저장

        이미지 공개 전환 후 문서 저장이 실패하면 업로드된 파일은 그대로 남습니다.
        """
        owned_paths = [self.storage_service.ensure_owned_path(user_id, "post_image", p) for p in file_paths]

        image_urls = []
        for file_path in owned_paths:
            image_urls.append(self.storage_service.make_public_and_get_url(file_path))

        profile = self.user_service.get_user_profile(user_id)
        new_post = Post(
            post_id=str(uuid.uuid4()),
            title=title,
            description=description,
            category=category,
            location=location,
            author_id=user_id,
            author_name=profile.display_name if profile else "User",
            author_image_url=profile.photo_url if profile else "",
            image_urls=image_urls,
            status=PostStatus.ACTIVE,
            type=post_type,
            created_at=DateTimeUtils.now()
        )

        try:
            self.posts_ref.document(new_post.post_id).set(DateTimeUtils.for_firestore(asdict(new_post)))
        except Exception as e:
            logging.error(f"게시글 생성 실패 (user_id: {user_id}, 업로드된 이미지 {len(image_urls)}개 남음): {e}", exc_info=True)
            raise
        logging.info(f"게시글 생성 완료 (post_id: {new_post.post_id}, type: {post_type.value})")
        return new_post

    def update_post(self, post_id: str, user_id: str, updates: Dict[str, Any]) -> Post:
        """작성자 본인만 제목/설명/카테고리/위치를 수정할 수 있습니다."""
        self._get_owned_post(post_id, user_id)
        update_data = {k: v for k, v in updates.items() if k in self.EDITABLE_FIELDS}
        if update_data:
            self.posts_ref.document(post_id).update(update_data)
        return self.get_post(post_id)

    def delete_post(self, post_id: str, user_id: str) -> None:
        """
        게시글과 첨부 이미지를 삭제합니다. (작성자 본인만 가능)
        이미지 삭제 실패는 로그만 남기고 문서 삭제는 계속 진행합니다.
        """
        post = self._get_owned_post(post_id, user_id)
        for url in post.image_urls:
            try:
                self.storage_service.delete_file_by_url(url)
            except Exception as e:
                logging.error(f"Storage 이미지 삭제 실패 (url: {url}): {e}")

        self.posts_ref.document(post_id).delete()
        logging.info(f"게시글 삭제 완료 (post_id: {post_id})")

    def mark_claimed(self, post_id: str) -> None:
        self.posts_ref.document(post_id).update({'status': PostStatus.CLAIMED.value})
