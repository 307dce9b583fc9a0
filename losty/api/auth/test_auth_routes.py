# losty/api/auth/test_auth_routes.py
"""
인증 API 테스트. Firebase Auth와 Identity Toolkit 호출은 모두 대역을 사용합니다.

사용법: python -m pytest losty/api/auth/test_auth_routes.py -v
"""

from types import SimpleNamespace
from firebase_admin import auth as firebase_auth

from losty.services.identity_toolkit_service import IdentityToolkitError

REGISTER_BODY = {
    "email": "mina@example.com",
    "full_name": "Mina Park",
    "username": "mina",
    "password": "password123",
    "phone_number": "+821012345678",
}

def test_register_creates_user_document(client, mock_firebase_auth, identity_service, fake_db):
    mock_firebase_auth.create_user.return_value = SimpleNamespace(uid="new-uid")
    identity_service.sign_in_with_password.return_value = {"localId": "new-uid", "idToken": "id-token"}

    response = client.post('/api/auth/register', json=REGISTER_BODY)

    assert response.status_code == 201
    assert response.get_json()["verification_email_sent"] is True
    identity_service.send_email_verification.assert_called_once_with("id-token")
    stored = fake_db.docs('users')["new-uid"]
    assert stored['username'] == "mina"
    assert stored['phone_number'] == "+821012345678"
    assert 'password' not in stored

def test_register_succeeds_even_if_verification_mail_fails(client, mock_firebase_auth, identity_service):
    mock_firebase_auth.create_user.return_value = SimpleNamespace(uid="new-uid")
    identity_service.sign_in_with_password.side_effect = IdentityToolkitError("TOO_MANY_ATTEMPTS_TRY_LATER")

    response = client.post('/api/auth/register', json=REGISTER_BODY)

    assert response.status_code == 201
    assert response.get_json()["verification_email_sent"] is False

def test_register_duplicate_email(client, mock_firebase_auth):
    mock_firebase_auth.create_user.side_effect = firebase_auth.EmailAlreadyExistsError(
        "The user with the provided email already exists", None, None
    )

    response = client.post('/api/auth/register', json=REGISTER_BODY)

    assert response.status_code == 409
    assert response.get_json()["message"] == "This email is already registered. Please try to sign in."

def test_register_validation(client):
    response = client.post('/api/auth/register', json={**REGISTER_BODY, "password": "short", "username": "  "})

    assert response.status_code == 400
    details = response.get_json()["details"]
    assert details["password"] == ["Password must be at least 8 characters."]
    assert "username" in details

def test_login_with_phone_number(client, seed_user, identity_service, auth_records):
    seed_user("uid-1", email="mina@example.com", phone_number="+821012345678")
    auth_records["uid-1"] = SimpleNamespace(email_verified=True)
    identity_service.sign_in_with_password.return_value = {"localId": "uid-1", "idToken": "id-token"}

    response = client.post('/api/auth/login', json={"credential": "+821012345678", "password": "password123"})

    assert response.status_code == 200
    body = response.get_json()
    assert body["user_id"] == "uid-1"
    assert body["access_token"] and body["refresh_token"]
    identity_service.sign_in_with_password.assert_called_once_with("mina@example.com", "password123")

def test_login_unknown_phone_number(client):
    response = client.post('/api/auth/login', json={"credential": "+820000000000", "password": "password123"})

    assert response.status_code == 401
    assert response.get_json()["message"] == "No account found with this phone number."

def test_login_requires_verified_email(client, identity_service, auth_records):
    auth_records["uid-1"] = SimpleNamespace(email_verified=False)
    identity_service.sign_in_with_password.return_value = {"localId": "uid-1", "idToken": "id-token"}

    response = client.post('/api/auth/login', json={"credential": "mina@example.com", "password": "password123"})

    assert response.status_code == 401
    assert response.get_json()["message"] == "Please verify your email before logging in."

def test_login_wrong_password(client, identity_service):
    identity_service.sign_in_with_password.side_effect = IdentityToolkitError(
        "INVALID_LOGIN_CREDENTIALS", "Invalid email or password."
    )

    response = client.post('/api/auth/login', json={"credential": "mina@example.com", "password": "wrong-pass"})

    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid email or password."

def test_google_sign_in_creates_user_once(client, identity_service, fake_db):
    identity_service.sign_in_with_google.return_value = {
        "localId": "g-uid", "email": "jun@gmail.com", "displayName": "Jun", "photoUrl": "https://example.com/jun.png"
    }

    first = client.post('/api/auth/google', json={"id_token": "google-token"})
    second = client.post('/api/auth/google', json={"id_token": "google-token"})

    assert first.get_json()["is_new_user"] is True
    assert second.get_json()["is_new_user"] is False
    assert fake_db.docs('users')["g-uid"]['display_name'] == "Jun"

def test_logout_revokes_tokens(client, seed_user, identity_service, auth_records):
    seed_user("uid-1", email="mina@example.com")
    auth_records["uid-1"] = SimpleNamespace(email_verified=True)
    identity_service.sign_in_with_password.return_value = {"localId": "uid-1", "idToken": "id-token"}
    tokens = client.post('/api/auth/login', json={"credential": "mina@example.com", "password": "password123"}).get_json()
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}
    assert client.get('/api/bookmarks', headers=headers).status_code == 200

    response = client.post('/api/auth/logout', json={
        "access_token": tokens["access_token"], "refresh_token": tokens["refresh_token"]
    })

    assert response.status_code == 200
    assert client.get('/api/bookmarks', headers=headers).status_code == 401
    refresh = client.post('/api/auth/token/refresh', headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
    assert refresh.status_code == 401

def test_logout_with_garbage_token(client):
    response = client.post('/api/auth/logout', json={"access_token": "not-a-jwt", "refresh_token": "nope"})
    assert response.status_code == 422
