# losty/api/claims/services.py
import logging
import uuid
from dataclasses import asdict
from typing import Optional, List
from firebase_admin import firestore

from losty.models.claim import Claim, ClaimStatus
from losty.models.notification import NotificationType
from losty.models.post import PostStatus
from losty.api.posts.services import PostService
from losty.api.users.services import UserService
from losty.services.notification_service import NotificationService
from losty.utils.datetime_utils import DateTimeUtils

class ClaimService:
    """
    클레임(내 물건 요청) 관련 비즈니스 로직을 담당하는 서비스 클래스.
    - 클레임 생성, 내 클레임/내 게시물에 들어온 클레임 조회
    - 게시물 작성자의 승인/거절
    """
    def __init__(self, post_service: PostService, user_service: UserService,
                 notification_service: NotificationService, db=None):
        self.db = db or firestore.client()
        self.claims_ref = self.db.collection('claims')
        self.post_service = post_service
        self.user_service = user_service
        self.notification_service = notification_service

    def create_claim(self, user_id: str, post_id: str) -> Claim:
        """
        게시물에 대한 클레임을 생성하고 게시물 작성자에게 알립니다.
        - 자신의 게시물은 클레임할 수 없습니다.
        - 이미 claimed 상태인 게시물, 이미 대기 중인 본인 클레임이 있으면 거부합니다.
        """
        post = self.post_service.get_post(post_id)
        if not post:
            raise LookupError("Post not found.")
        if post.author_id == user_id:
            raise ValueError("You cannot claim your own item.")
        if post.status == PostStatus.CLAIMED:
            raise ValueError("This item has already been claimed.")

        existing = self.claims_ref \
            .where('post_id', '==', post_id) \
            .where('claimer_id', '==', user_id) \
            .where('status', '==', ClaimStatus.PENDING.value) \
            .limit(1).stream()
        if next(iter(existing), None):
            raise ValueError("You already have a pending claim for this item.")

        claimer_name = self.user_service.get_user_name(user_id)
        claim = Claim(
            claim_id=str(uuid.uuid4()),
            post_id=post.post_id,
            post_title=post.title,
            post_owner_id=post.author_id,
            claimer_id=user_id,
            claimer_name=claimer_name if claimer_name and claimer_name != "User" else "Someone",
            status=ClaimStatus.PENDING,
            claimed_at=DateTimeUtils.now()
        )
        self.claims_ref.document(claim.claim_id).set(DateTimeUtils.for_firestore(asdict(claim)))
        logging.info(f"클레임 생성 완료 (claim_id: {claim.claim_id}, post_id: {post_id})")

        self.notification_service.create_notification(
            recipient_id=post.author_id,
            sender_id=user_id,
            n_type=NotificationType.CLAIM_REQUEST,
            message=f"{claim.claimer_name} claimed your item '{post.title}'.",
            post_id=post.post_id,
            claim_id=claim.claim_id
        )
        return claim

    def _list_claims(self, field_name: str, user_id: str) -> List[Claim]:
        docs = self.claims_ref \
            .where(field_name, '==', user_id) \
            .order_by('claimed_at', direction=firestore.Query.DESCENDING) \
            .stream()
        return [Claim.from_dict(doc.to_dict(), doc.id) for doc in docs]

    def get_my_claims(self, user_id: str) -> List[Claim]:
        """내가 보낸 클레임 목록 (최신순)"""
        return self._list_claims('claimer_id', user_id)

    def get_claims_for_my_posts(self, user_id: str) -> List[Claim]:
        """내 게시물에 들어온 클레임 목록 (최신순)"""
        return self._list_claims('post_owner_id', user_id)

    def get_claim(self, claim_id: str) -> Optional[Claim]:
        doc = self.claims_ref.document(claim_id).get()
        if not doc.exists:
            return None
        return Claim.from_dict(doc.to_dict(), doc.id)

    def _get_owned_pending_claim(self, claim_id: str, user_id: str) -> Claim:
        claim = self.get_claim(claim_id)
        if not claim:
            raise LookupError("Claim not found.")
        if claim.post_owner_id != user_id:
            raise PermissionError("이 클레임을 처리할 권한이 없습니다.")
        if claim.status != ClaimStatus.PENDING:
            raise ValueError(f"This claim has already been {claim.status.value}.")
        return claim

    def _mark_notification_read(self, user_id: str, notification_id: Optional[str]) -> None:
        if not notification_id:
            return
        try:
            self.notification_service.mark_as_read(user_id, notification_id)
        except Exception as e:
            logging.warning(f"알림 읽음 처리 실패 (notification_id: {notification_id}): {e}")

    def approve_claim(self, claim_id: str, user_id: str, notification_id: Optional[str] = None) -> Claim:
        """
        클레임을 승인합니다. 아래 단계는 트랜잭션 없이 순서대로 실행되며,
        중간 단계가 실패하면 앞 단계의 변경은 그대로 남습니다.
        1. 클레임 -> approved
        2. 같은 게시물의 다른 pending 클레임 -> denied
        3. 게시물 -> claimed
        4. 승인 요청 알림 읽음 처리
        5. 승인/거절된 요청자들에게 알림
        """
        claim = self._get_owned_pending_claim(claim_id, user_id)

        claim_ref = self.claims_ref.document(claim_id)
        claim_ref.update({'status': ClaimStatus.APPROVED.value})

        pending_claims = self.claims_ref \
            .where('post_id', '==', claim.post_id) \
            .where('status', '==', ClaimStatus.PENDING.value) \
            .stream()
        denied_claims = []
        for doc in pending_claims:
            if doc.id == claim_id:
                continue
            self.claims_ref.document(doc.id).update({'status': ClaimStatus.DENIED.value})
            denied_claims.append(Claim.from_dict(doc.to_dict(), doc.id))

        self.post_service.mark_claimed(claim.post_id)
        logging.info(f"클레임 승인 완료 (claim_id: {claim_id}, 거절된 클레임 {len(denied_claims)}건)")

        self._mark_notification_read(user_id, notification_id)

        self.notification_service.create_notification(
            recipient_id=claim.claimer_id,
            sender_id=user_id,
            n_type=NotificationType.CLAIM_APPROVED,
            message=f"Your claim for '{claim.post_title}' was approved.",
            post_id=claim.post_id,
            claim_id=claim_id
        )
        for denied in denied_claims:
            self.notification_service.create_notification(
                recipient_id=denied.claimer_id,
                sender_id=user_id,
                n_type=NotificationType.CLAIM_DENIED,
                message=f"Your claim for '{denied.post_title}' was denied.",
                post_id=denied.post_id,
                claim_id=denied.claim_id
            )

        claim.status = ClaimStatus.APPROVED
        return claim

    def reject_claim(self, claim_id: str, user_id: str, notification_id: Optional[str] = None) -> Claim:
        """클레임을 거절하고 요청자에게 알립니다. 게시물 상태는 바뀌지 않습니다."""
        claim = self._get_owned_pending_claim(claim_id, user_id)

        self.claims_ref.document(claim_id).update({'status': ClaimStatus.DENIED.value})
        self._mark_notification_read(user_id, notification_id)

        self.notification_service.create_notification(
            recipient_id=claim.claimer_id,
            sender_id=user_id,
            n_type=NotificationType.CLAIM_DENIED,
            message=f"Your claim for '{claim.post_title}' was denied.",
            post_id=claim.post_id,
            claim_id=claim_id
        )
        claim.status = ClaimStatus.DENIED
        return claim
