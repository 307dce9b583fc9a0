# losty/api/auth/services.py
import re
import logging
from datetime import datetime, timezone
from typing import Tuple, Optional
from dataclasses import asdict
from firebase_admin import firestore, auth as firebase_auth
from flask import Flask

from losty.models.user import User
from losty.services.identity_toolkit_service import IdentityToolkitService, IdentityToolkitError
from losty.utils.datetime_utils import DateTimeUtils

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

class AuthenticationError(Exception):
    """로그인 자격 증명이 잘못되었거나 로그인할 수 없는 계정일 때 발생합니다."""

class AuthService:
    def __init__(self, db=None, identity_service: Optional[IdentityToolkitService] = None):
        self.db = db
        self.users_ref = db.collection('users') if db else None
        self.revoked_tokens_ref = db.collection('revoked_tokens') if db else None
        self.identity_service = identity_service
        self.app: Optional[Flask] = None

    def init_app(self, app: Flask):
        """앱 초기화 과정에서 호출되어 DB 연결 및 Identity Toolkit 클라이언트를 설정합니다."""
        if self.db is None:
            self.db = firestore.client()
            self.users_ref = self.db.collection('users')
            self.revoked_tokens_ref = self.db.collection('revoked_tokens')
        if self.identity_service is None:
            self.identity_service = IdentityToolkitService()
            self.identity_service.init_app(app)
        self.app = app

    # --- 회원가입 ---
    def register_user(self, email: str, full_name: str, username: str, password: str,
                      phone_number: str = "") -> Tuple[User, bool]:
        """
        Firebase Auth 사용자를 만들고 'users' 문서를 생성한 뒤 인증 메일을 보냅니다.

        :return: (생성된 User, 인증 메일 발송 성공 여부)
        """
        try:
            record = firebase_auth.create_user(email=email, password=password, display_name=username)
        except firebase_auth.EmailAlreadyExistsError:
            raise ValueError("This email is already registered. Please try to sign in.")

        new_user = User(
            uid=record.uid,
            email=email,
            username=username,
            full_name=full_name,
            display_name=username,
            phone_number=phone_number or "",
            created_at=DateTimeUtils.now()
        )
        user_data = DateTimeUtils.for_firestore(asdict(new_user))
        user_data.pop('fcm_token', None)
        self.users_ref.document(record.uid).set(user_data)

        verification_sent = False
        try:
            session = self.identity_service.sign_in_with_password(email, password)
            self.identity_service.send_email_verification(session['idToken'])
            verification_sent = True
        except Exception as e:
            # 계정은 이미 만들어졌으므로 가입 자체는 성공으로 처리
            logging.warning(f"인증 메일 발송 실패 (uid: {record.uid}): {e}")

        logging.info(f"신규 사용자 가입 완료 (uid: {record.uid})")
        return new_user, verification_sent

    # --- 로그인 ---
    def resolve_login_email(self, credential: str) -> str:
        """이메일이 아니면 전화번호로 보고 'users' 문서에서 이메일을 찾습니다."""
        credential = credential.strip()
        if EMAIL_PATTERN.match(credential):
            return credential

        query = self.users_ref.where('phone_number', '==', credential).limit(1).stream()
        user_doc = next(iter(query), None)
        if not user_doc:
            raise AuthenticationError("No account found with this phone number.")
        email = user_doc.to_dict().get('email')
        if not email:
            raise AuthenticationError("Could not retrieve email for this phone number.")
        return email

    def login_user(self, credential: str, password: str) -> str:
        """
        이메일(또는 전화번호)과 비밀번호로 로그인하고 uid를 반환합니다.
        이메일 인증을 마치지 않은 계정은 거부합니다.
        """
        email = self.resolve_login_email(credential)
        try:
            session = self.identity_service.sign_in_with_password(email, password)
        except IdentityToolkitError as e:
            raise AuthenticationError(str(e))

        user_id = session['localId']
        record = firebase_auth.get_user(user_id)
        if not record.email_verified:
            raise AuthenticationError("Please verify your email before logging in.")
        return user_id

    def sign_in_with_google(self, google_id_token: str) -> Tuple[str, bool]:
        """
        Google ID 토큰으로 로그인합니다. 'users' 문서가 없으면 새로 만듭니다.

        :return: (uid, 신규 사용자 여부)
        """
        try:
            result = self.identity_service.sign_in_with_google(google_id_token)
        except IdentityToolkitError as e:
            raise AuthenticationError(str(e))

        user_id = result['localId']
        user_ref = self.users_ref.document(user_id)
        if user_ref.get().exists:
            return user_id, False

        display_name = result.get('displayName') or (result.get('email') or "").split('@')[0] or "User"
        new_user = User(
            uid=user_id,
            email=result.get('email') or "",
            username=display_name,
            full_name=result.get('fullName') or display_name,
            display_name=display_name,
            photo_url=result.get('photoUrl') or "",
            created_at=DateTimeUtils.now()
        )
        user_data = DateTimeUtils.for_firestore(asdict(new_user))
        user_data.pop('fcm_token', None)
        user_ref.set(user_data)
        return user_id, True

    def send_password_reset(self, email: str) -> None:
        self.identity_service.send_password_reset(email)

    # --- Blocklist 관련 로직 ---
    def add_token_to_blocklist(self, jti: str, expires: datetime):
        """전달받은 토큰의 jti를 만료 시간과 함께 Firestore에 저장합니다."""
        try:
            token_data = DateTimeUtils.for_firestore({
                'revoked_at': DateTimeUtils.now(),
                'expires_at': expires
            })
            self.revoked_tokens_ref.document(jti).set(token_data)
        except Exception as e:
            logging.error(f"Blocklist 토큰 추가 실패 (jti: {jti}): {e}")

    def is_token_revoked(self, jwt_payload: dict) -> bool:
        """jti를 이용해 해당 토큰이 무효화 목록에 있는지 확인합니다."""
        jti = jwt_payload['jti']
        return self.revoked_tokens_ref.document(jti).get().exists

    def logout_user(self, access_jti: str, access_exp: int, refresh_jti: str, refresh_exp: int):
        """Access 토큰과 Refresh 토큰을 모두 Blocklist에 추가합니다."""
        self.add_token_to_blocklist(access_jti, datetime.fromtimestamp(access_exp, tz=timezone.utc))
        self.add_token_to_blocklist(refresh_jti, datetime.fromtimestamp(refresh_exp, tz=timezone.utc))
        logging.info(f"사용자 로그아웃 처리 완료. JTI: {access_jti[:8]}..., {refresh_jti[:8]}...")
