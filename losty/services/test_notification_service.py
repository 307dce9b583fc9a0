# losty/services/test_notification_service.py
"""
알림 서비스 테스트 (인메모리 Firestore, FCM 발송은 패치)

사용법: python -m pytest losty/services/test_notification_service.py -v
"""

from datetime import timedelta
from unittest import mock
import pytest

from losty.models.notification import NotificationType
from losty.utils.datetime_utils import DateTimeUtils

def _notify(notification_service, recipient="owner", sender="alice", message="Alice claimed your item."):
    return notification_service.create_notification(
        recipient_id=recipient, sender_id=sender, n_type=NotificationType.CLAIM_REQUEST,
        message=message, post_id="post-1", claim_id="claim-1"
    )

def test_never_notifies_yourself(notification_service, fake_db):
    assert _notify(notification_service, recipient="alice", sender="alice") is None
    assert fake_db.docs('users', 'alice', 'notifications') == {}

def test_sender_name_falls_back_to_someone(notification_service):
    notification = _notify(notification_service, sender="unknown")
    assert notification.from_user_name == "Someone"

def test_push_sent_only_with_fcm_token(notification_service, seed_user, mock_messaging_send):
    seed_user("alice", display_name="Alice")
    seed_user("owner", display_name="Owner")
    _notify(notification_service)
    mock_messaging_send.assert_not_called()

    seed_user("owner", display_name="Owner", fcm_token="device-token")
    _notify(notification_service)
    mock_messaging_send.assert_called_once()
    push = mock_messaging_send.call_args.args[0]
    assert push.token == "device-token"
    assert push.data["type"] == "CLAIM_REQUEST"

def test_push_failure_does_not_break_notification(notification_service, seed_user, mock_messaging_send, fake_db):
    seed_user("owner", fcm_token="device-token")
    mock_messaging_send.side_effect = Exception("FCM unavailable")

    notification = _notify(notification_service)

    assert notification is not None
    assert notification.notification_id in fake_db.docs('users', 'owner', 'notifications')

def test_recipient_lookup_failure_does_not_break_notification(notification_service, seed_user, mock_messaging_send, fake_db):
    """푸시용 수신자 문서 조회가 실패해도 알림은 저장되고 반환됩니다."""
    seed_user("alice", display_name="Alice")
    real_document = notification_service.users_ref.document

    def document(doc_id):
        ref = real_document(doc_id)
        if doc_id == "owner":
            ref.get = mock.Mock(side_effect=Exception("Firestore unavailable"))
        return ref

    with mock.patch.object(notification_service.users_ref, 'document', side_effect=document):
        notification = _notify(notification_service)

    assert notification is not None
    assert notification.from_user_name == "Alice"
    assert notification.notification_id in fake_db.docs('users', 'owner', 'notifications')
    mock_messaging_send.assert_not_called()

def test_unread_count_follows_reads(notification_service):
    first = _notify(notification_service, message="one")
    _notify(notification_service, message="two")
    _notify(notification_service, message="three")
    assert notification_service.count_unread("owner") == 3

    notification_service.mark_as_read("owner", first.notification_id)
    assert notification_service.count_unread("owner") == 2

    assert notification_service.mark_all_as_read("owner") == 2
    assert notification_service.count_unread("owner") == 0

def test_mark_missing_notification(notification_service):
    with pytest.raises(ValueError):
        notification_service.mark_as_read("owner", "missing")

def test_notifications_newest_first(notification_service, fake_db):
    base = DateTimeUtils.now()
    notifications_ref = fake_db.collection('users').document('owner').collection('notifications')
    for i, message in enumerate(["first", "second", "third"]):
        notifications_ref.document(message).set({
            'type': "CLAIM_REQUEST", 'message': message, 'is_read': False,
            'timestamp': base + timedelta(minutes=i)
        })

    messages = [n.message for n in notification_service.get_notifications("owner")]
    assert messages == ["third", "second", "first"]
