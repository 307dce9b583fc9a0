# losty/api/posts/test_post_services.py
"""
게시글 서비스 테스트 (인메모리 Firestore)

사용법: python -m pytest losty/api/posts/test_post_services.py -v
"""

from datetime import timedelta
import pytest

from losty.models.post import PostStatus, PostType
from losty.utils.datetime_utils import DateTimeUtils

def _create(post_service, user_id="owner", title="Black wallet", post_type=PostType.LOST, file_paths=None):
    return post_service.create_post(
        user_id,
        title=title,
        description="Left on the bus",
        category="Wallet",
        location="Bus 42",
        file_paths=file_paths or [],
        post_type=post_type
    )

def test_create_post_copies_author_profile(post_service, seed_user, fake_db):
    seed_user("owner", display_name="Mina", photo_url="https://example.com/mina.png")
    post = _create(post_service, file_paths=["post_images/owner/a.jpg"])

    stored = fake_db.docs('posts')[post.post_id]
    assert stored['author_name'] == "Mina"
    assert stored['author_image_url'] == "https://example.com/mina.png"
    assert stored['status'] == "active"
    assert stored['type'] == "LOST"
    assert stored['image_urls'] == ["https://storage.googleapis.com/losty-test.appspot.com/post_images/owner/a.jpg"]

def test_create_post_without_profile_uses_default_name(post_service):
    post = _create(post_service, user_id="ghost")
    assert post.author_name == "User"
    assert post.author_image_url == ""

def test_feed_excludes_claimed_posts_and_filters_type(post_service, seed_user):
    seed_user("owner")
    lost = _create(post_service, title="lost one")
    found = _create(post_service, title="found one", post_type=PostType.FOUND)
    claimed = _create(post_service, title="claimed one")
    post_service.mark_claimed(claimed.post_id)

    feed_ids = {p.post_id for p in post_service.get_feed()}
    assert feed_ids == {lost.post_id, found.post_id}
    assert [p.post_id for p in post_service.get_feed(PostType.FOUND)] == [found.post_id]

def test_feed_is_newest_first(post_service, fake_db):
    base = DateTimeUtils.now()
    for i, title in enumerate(["old", "middle", "new"]):
        fake_db.collection('posts').document(title).set({
            'title': title, 'author_id': "owner", 'status': "active",
            'created_at': base + timedelta(minutes=i)
        })
    assert [p.title for p in post_service.get_feed()] == ["new", "middle", "old"]

def test_posts_by_author_include_claimed(post_service):
    mine = _create(post_service, user_id="me")
    _create(post_service, user_id="someone-else")
    post_service.mark_claimed(mine.post_id)

    posts = post_service.get_posts_by_author("me")
    assert [p.post_id for p in posts] == [mine.post_id]
    assert posts[0].status == PostStatus.CLAIMED

def test_update_post_only_by_author(post_service):
    post = _create(post_service, user_id="owner")

    with pytest.raises(PermissionError):
        post_service.update_post(post.post_id, "intruder", {'title': "Mine now"})

    updated = post_service.update_post(post.post_id, "owner", {'title': "Brown wallet", 'status': "claimed"})
    assert updated.title == "Brown wallet"
    # 편집 가능한 필드가 아니면 무시
    assert updated.status == PostStatus.ACTIVE

def test_update_missing_post_raises_value_error(post_service):
    with pytest.raises(ValueError):
        post_service.update_post("nope", "owner", {'title': "x"})

def test_delete_post_removes_images_and_document(post_service, storage_service, fake_db):
    post = _create(post_service, file_paths=["post_images/owner/a.jpg", "post_images/owner/b.jpg"])
    storage_service.delete_file_by_url.side_effect = [Exception("gone"), None]

    post_service.delete_post(post.post_id, "owner")

    assert post.post_id not in fake_db.docs('posts')
    assert storage_service.delete_file_by_url.call_count == 2

def test_legacy_document_defaults(post_service, fake_db):
    """type/status가 없거나 대소문자가 다른 예전 문서도 읽을 수 있어야 함"""
    fake_db.collection('posts').document("legacy").set({'title': "Keys", 'status': "ACTIVE", 'type': "found"})
    post = post_service.get_post("legacy")
    assert post.status == PostStatus.ACTIVE
    assert post.type == PostType.FOUND
    assert post.image_urls == []
