# losty/services/notification_service.py
import logging
import uuid
from dataclasses import asdict
from typing import Optional, List
from firebase_admin import firestore, messaging

from losty.models.notification import Notification, NotificationType
from losty.utils.datetime_utils import DateTimeUtils

class NotificationService:
    """
    알림 관련 비즈니스 로직을 담당하는 공용 서비스 클래스.
    - 알림 문서는 수신자별 서브컬렉션 'users/{uid}/notifications'에 저장됩니다.
    - 수신자 문서에 fcm_token이 있으면 FCM 푸시도 함께 발송합니다.
    """
    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.users_ref = self.db.collection('users')

    def _notifications_ref(self, user_id: str):
        return self.users_ref.document(user_id).collection('notifications')

    def create_notification(self, recipient_id: str, sender_id: str, n_type: NotificationType, message: str,
                            post_id: str = "", claim_id: str = "") -> Optional[Notification]:
        """
        알림을 생성하여 Firestore에 저장하고 푸시를 발송합니다.
        - 자기 자신에게 보내는 알림은 생성하지 않습니다.
        - 알림 실패가 원래 작업(클레임 생성/승인 등)을 실패시키지 않도록 예외는 로그로만 남깁니다.

        :param recipient_id: 알림을 받을 사용자 ID
        :param sender_id: 알림을 유발한 사용자 ID
        :param n_type: 알림 유형 (NotificationType Enum)
        :param message: 알림에 표시될 문구
        """
        if not recipient_id or recipient_id == sender_id:
            return None

        try:
            sender_doc = self.users_ref.document(sender_id).get()
            sender_info = sender_doc.to_dict() if sender_doc.exists else {}
            sender_name = sender_info.get('display_name') or sender_info.get('username') or "Someone"

            notification = Notification(
                notification_id=str(uuid.uuid4()),
                type=n_type,
                from_user_id=sender_id,
                from_user_name=sender_name,
                message=message,
                post_id=post_id,
                claim_id=claim_id
            )

            notification_dict = DateTimeUtils.for_firestore(asdict(notification))
            self._notifications_ref(recipient_id).document(notification.notification_id).set(notification_dict)
            logging.info(f"{n_type.value} 알림 생성 완료: {sender_id} -> {recipient_id}")

            self._send_push(recipient_id, notification)
            return notification

        except Exception as e:
            logging.error(f"알림 생성 중 오류 발생: {e}", exc_info=True)
            return None

    def _send_push(self, recipient_id: str, notification: Notification) -> None:
        """수신자의 fcm_token으로 FCM 푸시를 보냅니다. 토큰이 없으면 건너뜁니다."""
        try:
            recipient_doc = self.users_ref.document(recipient_id).get()
            token = (recipient_doc.to_dict() or {}).get('fcm_token') if recipient_doc.exists else None
            if not token:
                return

            push = messaging.Message(
                token=token,
                notification=messaging.Notification(title="Losty", body=notification.message),
                data={
                    "type": notification.type.value,
                    "notification_id": notification.notification_id,
                    "post_id": notification.post_id,
                    "claim_id": notification.claim_id,
                }
            )
            messaging.send(push)
        except Exception as e:
            logging.warning(f"FCM 푸시 발송 실패 (recipient: {recipient_id}): {e}")

    def get_notifications(self, user_id: str) -> List[Notification]:
        """사용자의 알림 목록을 최신순으로 조회합니다."""
        docs = self._notifications_ref(user_id) \
            .order_by('timestamp', direction=firestore.Query.DESCENDING) \
            .stream()
        return [Notification.from_dict(doc.to_dict(), doc.id) for doc in docs]

    def unread_query(self, user_id: str):
        """읽지 않은 알림 쿼리. 실시간 스트림과 개수 조회가 함께 사용합니다."""
        return self._notifications_ref(user_id).where('is_read', '==', False)

    def count_unread(self, user_id: str) -> int:
        return len(list(self.unread_query(user_id).stream()))

    def mark_as_read(self, user_id: str, notification_id: str) -> None:
        """특정 알림을 읽음 처리합니다. 알림이 없으면 ValueError."""
        notification_ref = self._notifications_ref(user_id).document(notification_id)
        if not notification_ref.get().exists:
            raise ValueError("알림을 찾을 수 없습니다.")
        notification_ref.update({'is_read': True})

    def mark_all_as_read(self, user_id: str) -> int:
        """읽지 않은 알림을 모두 읽음 처리하고 처리한 개수를 반환합니다."""
        updated = 0
        for doc in self.unread_query(user_id).stream():
            doc.reference.update({'is_read': True})
            updated += 1
        return updated
