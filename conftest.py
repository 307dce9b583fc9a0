# conftest.py
"""
공용 pytest 픽스처

- FakeFirestore: 서비스 테스트용 인메모리 Firestore. 컬렉션/서브컬렉션, where/order_by/limit,
  set(merge)/update(Increment)/delete, on_snapshot 구독을 지원합니다.
- Firebase Auth / Messaging 호출은 unittest.mock으로 대체합니다.
"""

import copy
import uuid
from types import SimpleNamespace
from unittest import mock

import pytest
from flask_jwt_extended import create_access_token
from firebase_admin import firestore, auth as firebase_auth
from google.api_core.exceptions import NotFound

from losty import create_app
from losty.services.storage_service import StorageService
from losty.services.notification_service import NotificationService
from losty.services.identity_toolkit_service import IdentityToolkitService
from losty.api.auth.services import AuthService
from losty.api.users.services import UserService
from losty.api.posts.services import PostService
from losty.api.claims.services import ClaimService
from losty.api.conversations.services import ConversationService
from losty.api.bookmarks.services import BookmarkService
from losty.utils.datetime_utils import DateTimeUtils


# =====================================================================================
# 인메모리 Firestore
# =====================================================================================

class FakeDocumentSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeWatch:
    def __init__(self, db, query, callback):
        self._db = db
        self.query = query
        self.callback = callback
        self.unsubscribed = False

    def fire(self):
        self.callback(self.query.get(), [], DateTimeUtils.now())

    def unsubscribe(self):
        self.unsubscribed = True
        if self in self._db.watches:
            self._db.watches.remove(self)


class FakeQuery:
    def __init__(self, db, path, filters=(), orders=(), limit_count=None):
        self._db = db
        self._path = path
        self._filters = tuple(filters)
        self._orders = tuple(orders)
        self._limit = limit_count

    def where(self, field_path, op_string, value):
        return FakeQuery(self._db, self._path, self._filters + ((field_path, op_string, value),),
                         self._orders, self._limit)

    def order_by(self, field_path, direction=firestore.Query.ASCENDING):
        return FakeQuery(self._db, self._path, self._filters,
                         self._orders + ((field_path, direction),), self._limit)

    def limit(self, count):
        return FakeQuery(self._db, self._path, self._filters, self._orders, count)

    @staticmethod
    def _matches(data, field_path, op_string, value):
        actual = data.get(field_path)
        if op_string == '==':
            return actual == value
        if op_string == 'array_contains':
            return isinstance(actual, list) and value in actual
        if op_string == 'in':
            return actual in value
        raise NotImplementedError(f"지원하지 않는 연산자: {op_string}")

    def get(self):
        collection = self._db.store.get(self._path, {})
        rows = [
            (doc_id, data) for doc_id, data in collection.items()
            if all(self._matches(data, *f) for f in self._filters)
        ]
        # 마지막 정렬 조건부터 안정 정렬
        for field_path, direction in reversed(self._orders):
            present = [r for r in rows if r[1].get(field_path) is not None]
            missing = [r for r in rows if r[1].get(field_path) is None]
            present.sort(key=lambda r: r[1][field_path], reverse=direction == firestore.Query.DESCENDING)
            rows = present + missing
        if self._limit is not None:
            rows = rows[:self._limit]
        return [
            FakeDocumentSnapshot(FakeDocumentReference(self._db, self._path, doc_id), copy.deepcopy(data))
            for doc_id, data in rows
        ]

    def stream(self):
        return iter(self.get())

    def on_snapshot(self, callback):
        watch = FakeWatch(self._db, self, callback)
        self._db.watches.append(watch)
        watch.fire()
        return watch


class FakeCollectionReference(FakeQuery):
    def __init__(self, db, path):
        super().__init__(db, path)

    @property
    def id(self):
        return self._path[-1]

    def document(self, document_id=None):
        return FakeDocumentReference(self._db, self._path, document_id or uuid.uuid4().hex)

    def add(self, document_data):
        ref = self.document()
        ref.set(document_data)
        return DateTimeUtils.now(), ref


class FakeDocumentReference:
    def __init__(self, db, collection_path, document_id):
        self._db = db
        self._collection_path = collection_path
        self.id = document_id

    def _docs(self):
        return self._db.store.setdefault(self._collection_path, {})

    def get(self):
        data = self._docs().get(self.id)
        return FakeDocumentSnapshot(self, copy.deepcopy(data) if data is not None else None)

    def set(self, document_data, merge=False):
        docs = self._docs()
        if merge and self.id in docs:
            docs[self.id].update(copy.deepcopy(document_data))
        else:
            docs[self.id] = copy.deepcopy(document_data)
        self._db.notify(self._collection_path)

    def update(self, field_updates):
        docs = self._docs()
        if self.id not in docs:
            raise NotFound(f"No document to update: {'/'.join(self._collection_path)}/{self.id}")
        for key, value in field_updates.items():
            if isinstance(value, firestore.Increment):
                docs[self.id][key] = (docs[self.id].get(key) or 0) + value.value
            else:
                docs[self.id][key] = copy.deepcopy(value)
        self._db.notify(self._collection_path)

    def delete(self):
        self._docs().pop(self.id, None)
        self._db.notify(self._collection_path)

    def collection(self, collection_id):
        return FakeCollectionReference(self._db, self._collection_path + (self.id, collection_id))


class FakeFirestore:
    def __init__(self):
        self.store = {}
        self.watches = []

    def collection(self, collection_id):
        return FakeCollectionReference(self, (collection_id,))

    def notify(self, collection_path):
        for watch in list(self.watches):
            if watch.query._path == collection_path:
                watch.fire()

    def docs(self, *path):
        """테스트 검증용: 컬렉션 경로의 {doc_id: data} 딕셔너리"""
        return self.store.get(tuple(path), {})


# =====================================================================================
# Firebase 외부 호출 대체
# =====================================================================================

@pytest.fixture
def auth_records():
    """uid -> Firebase Auth 사용자 레코드. 테스트에서 직접 채웁니다."""
    return {}

@pytest.fixture(autouse=True)
def mock_firebase_auth(auth_records):
    def get_user(uid):
        if uid not in auth_records:
            raise firebase_auth.UserNotFoundError(f"No user record found for the provided user ID: {uid}.")
        return auth_records[uid]

    with mock.patch.object(firebase_auth, 'get_user', side_effect=get_user) as get_user_mock, \
         mock.patch.object(firebase_auth, 'update_user') as update_user_mock, \
         mock.patch.object(firebase_auth, 'create_user') as create_user_mock:
        yield SimpleNamespace(get_user=get_user_mock, update_user=update_user_mock, create_user=create_user_mock)

@pytest.fixture(autouse=True)
def mock_messaging_send():
    with mock.patch('firebase_admin.messaging.send', return_value="projects/losty/messages/1") as send:
        yield send


# =====================================================================================
# 서비스 픽스처
# =====================================================================================

@pytest.fixture
def fake_db():
    return FakeFirestore()

@pytest.fixture
def storage_service():
    """업로드 경로를 그대로 통과시키고 공개 URL을 돌려주는 Storage 대역"""
    service = mock.create_autospec(StorageService, instance=True)
    service.ensure_owned_path.side_effect = lambda user_id, upload_type, file_path: file_path
    service.make_public_and_get_url.side_effect = \
        lambda file_path: f"https://storage.googleapis.com/losty-test.appspot.com/{file_path}"
    return service

@pytest.fixture
def notification_service(fake_db):
    return NotificationService(db=fake_db)

@pytest.fixture
def user_service(storage_service, fake_db):
    return UserService(storage_service=storage_service, db=fake_db)

@pytest.fixture
def post_service(storage_service, user_service, fake_db):
    return PostService(storage_service=storage_service, user_service=user_service, db=fake_db)

@pytest.fixture
def claim_service(post_service, user_service, notification_service, fake_db):
    return ClaimService(post_service=post_service, user_service=user_service,
                        notification_service=notification_service, db=fake_db)

@pytest.fixture
def conversation_service(post_service, user_service, fake_db):
    return ConversationService(post_service=post_service, user_service=user_service, db=fake_db)

@pytest.fixture
def bookmark_service(fake_db):
    return BookmarkService(db=fake_db)

@pytest.fixture
def seed_user(fake_db):
    """'users/{uid}' 문서를 만듭니다."""
    def _seed(uid, display_name="User", email=None, **extra):
        data = {
            'uid': uid,
            'email': email or f"{uid}@example.com",
            'username': display_name,
            'display_name': display_name,
            'full_name': display_name,
            'phone_number': "",
            'photo_url': "",
            'created_at': DateTimeUtils.now(),
        }
        data.update(extra)
        fake_db.collection('users').document(uid).set(data)
        return data
    return _seed


# =====================================================================================
# Flask 앱 픽스처
# =====================================================================================

@pytest.fixture
def identity_service():
    return mock.create_autospec(IdentityToolkitService, instance=True)

@pytest.fixture
def auth_service(fake_db, identity_service):
    return AuthService(db=fake_db, identity_service=identity_service)

@pytest.fixture
def app(storage_service, notification_service, user_service, post_service, claim_service,
        conversation_service, bookmark_service, auth_service):
    services = {
        'storage': storage_service,
        'notifications': notification_service,
        'users': user_service,
        'posts': post_service,
        'claims': claim_service,
        'conversations': conversation_service,
        'bookmarks': bookmark_service,
        'auth': auth_service,
    }
    return create_app('testing', services=services)

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def auth_header(app):
    """uid로 Access Token을 발급해 Authorization 헤더를 만듭니다."""
    def _header(uid):
        with app.app_context():
            token = create_access_token(identity=uid)
        return {"Authorization": f"Bearer {token}"}
    return _header
