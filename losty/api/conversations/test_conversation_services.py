# losty/api/conversations/test_conversation_services.py
"""
대화방/메시지 서비스 테스트 (인메모리 Firestore)

사용법: python -m pytest losty/api/conversations/test_conversation_services.py -v
"""

import pytest

@pytest.fixture
def item(post_service, seed_user):
    seed_user("owner", display_name="Owner")
    seed_user("finder", display_name="Finder")
    return post_service.create_post(
        "owner", title="Gray backpack", description="Lost near the gym",
        category="Bag", location="Gym", file_paths=["post_images/owner/bag.jpg"]
    )

def test_create_conversation_with_post_owner(conversation_service, item, fake_db):
    conversation = conversation_service.get_or_create_conversation("finder", item.post_id)

    stored = fake_db.docs('conversations')[conversation.conversation_id]
    assert stored['participants'] == ["finder", "owner"]
    assert stored['participant1_name'] == "Finder"
    assert stored['participant2_name'] == "Owner"
    assert stored['post_image_url'].endswith("post_images/owner/bag.jpg")
    assert stored['last_message'] == ""
    assert stored['unread_count'] == 0

def test_existing_conversation_is_reused(conversation_service, item, fake_db):
    first = conversation_service.get_or_create_conversation("finder", item.post_id)
    second = conversation_service.get_or_create_conversation("finder", item.post_id)

    assert first.conversation_id == second.conversation_id
    assert len(fake_db.docs('conversations')) == 1

def test_cannot_message_yourself(conversation_service, item):
    with pytest.raises(ValueError):
        conversation_service.get_or_create_conversation("owner", item.post_id)

def test_send_message_updates_preview_and_unread_count(conversation_service, item, fake_db):
    conversation = conversation_service.get_or_create_conversation("finder", item.post_id)

    conversation_service.send_message(conversation.conversation_id, "finder", "Is this yours?")
    conversation_service.send_message(conversation.conversation_id, "finder", "It has a keychain.")

    stored = fake_db.docs('conversations')[conversation.conversation_id]
    assert stored['last_message'] == "It has a keychain."
    assert stored['unread_count'] == 2

    messages = conversation_service.get_messages(conversation.conversation_id, "owner")
    assert [m.text for m in messages] == ["Is this yours?", "It has a keychain."]
    assert all(not m.read for m in messages)
    assert messages[0].sender_name == "Finder"

def test_non_participant_cannot_read_or_send(conversation_service, item, seed_user):
    seed_user("stranger")
    conversation = conversation_service.get_or_create_conversation("finder", item.post_id)

    with pytest.raises(PermissionError):
        conversation_service.get_messages(conversation.conversation_id, "stranger")
    with pytest.raises(PermissionError):
        conversation_service.send_message(conversation.conversation_id, "stranger", "hi")

def test_missing_conversation(conversation_service):
    with pytest.raises(LookupError):
        conversation_service.get_messages("nope", "finder")

def test_mark_read_only_touches_other_participants_messages(conversation_service, item, fake_db):
    conversation = conversation_service.get_or_create_conversation("finder", item.post_id)
    conversation_service.send_message(conversation.conversation_id, "finder", "Hello")
    conversation_service.send_message(conversation.conversation_id, "owner", "Hi!")

    updated = conversation_service.mark_conversation_read(conversation.conversation_id, "owner")

    assert updated == 1
    by_sender = {m['sender_id']: m['read'] for m in fake_db.docs('messages').values()}
    assert by_sender == {"finder": True, "owner": False}
    assert fake_db.docs('conversations')[conversation.conversation_id]['unread_count'] == 1

def test_sender_marking_read_keeps_unread_count(conversation_service, item, fake_db):
    """보낸 사람이 읽음 처리를 호출해도 상대방이 읽지 않은 메시지 수는 유지됩니다."""
    conversation = conversation_service.get_or_create_conversation("finder", item.post_id)
    conversation_service.send_message(conversation.conversation_id, "finder", "Is this yours?")
    conversation_service.send_message(conversation.conversation_id, "finder", "It has a keychain.")

    updated = conversation_service.mark_conversation_read(conversation.conversation_id, "finder")

    assert updated == 0
    assert all(not m['read'] for m in fake_db.docs('messages').values())
    assert fake_db.docs('conversations')[conversation.conversation_id]['unread_count'] == 2

    conversation_service.mark_conversation_read(conversation.conversation_id, "owner")
    assert fake_db.docs('conversations')[conversation.conversation_id]['unread_count'] == 0

def test_conversation_list_newest_first(conversation_service, post_service, item, seed_user):
    other = post_service.create_post(
        "owner", title="Silver ring", description="", category="Jewelry", location="Pool", file_paths=[]
    )
    older = conversation_service.get_or_create_conversation("finder", item.post_id)
    newer = conversation_service.get_or_create_conversation("finder", other.post_id)
    conversation_service.send_message(newer.conversation_id, "finder", "latest")

    conversations = conversation_service.get_conversations("owner")
    assert [c.conversation_id for c in conversations] == [newer.conversation_id, older.conversation_id]
    assert conversation_service.get_conversations("stranger") == []
