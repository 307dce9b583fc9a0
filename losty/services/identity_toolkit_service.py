# losty/services/identity_toolkit_service.py

import logging
import requests
from typing import Optional
from flask import Flask

class IdentityToolkitError(Exception):
    """Identity Toolkit REST API가 오류 코드를 반환했을 때 발생합니다."""
    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        super().__init__(message or code)

class IdentityToolkitService:
    """
    Firebase Auth의 Identity Toolkit REST API 통신을 담당하는 서비스 클래스입니다.
    Admin SDK에는 비밀번호 검증, 인증 메일 발송 기능이 없어 REST API를 직접 호출합니다.
    """
    _base_url = "https://identitytoolkit.googleapis.com/v1"

    # 사용자에게 그대로 보여줄 수 있는 메시지로 변환
    _error_messages = {
        "EMAIL_NOT_FOUND": "Invalid email or password.",
        "INVALID_PASSWORD": "Invalid email or password.",
        "INVALID_LOGIN_CREDENTIALS": "Invalid email or password.",
        "USER_DISABLED": "This account has been disabled.",
        "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later.",
        "INVALID_IDP_RESPONSE": "Google Sign-In failed",
        "INVALID_ID_TOKEN": "Your session has expired. Please sign in again.",
    }

    def __init__(self, api_key: Optional[str] = None, timeout: float = 10.0):
        self.api_key = api_key
        self.timeout = timeout

    def init_app(self, app: Flask):
        """앱 설정에서 웹 API 키를 읽어옵니다."""
        self.api_key = app.config.get('FIREBASE_WEB_API_KEY')
        if not self.api_key:
            logging.warning("FIREBASE_WEB_API_KEY가 설정되지 않았습니다. 비밀번호 로그인이 동작하지 않습니다.")

    def _post(self, endpoint: str, payload: dict) -> dict:
        if not self.api_key:
            raise RuntimeError("IdentityToolkitService가 초기화되지 않았습니다. FIREBASE_WEB_API_KEY를 확인해주세요.")

        response = requests.post(
            f"{self._base_url}/{endpoint}",
            params={"key": self.api_key},
            json=payload,
            timeout=self.timeout
        )
        if response.status_code != 200:
            try:
                code = response.json().get('error', {}).get('message', 'UNKNOWN_ERROR')
            except ValueError:
                code = 'UNKNOWN_ERROR'
            # "WEAK_PASSWORD : Password should be at least 6 characters" 형태도 있음
            code = code.split(' ')[0]
            logging.warning(f"Identity Toolkit 호출 실패 ({endpoint}): {response.status_code} {code}")
            raise IdentityToolkitError(code, self._error_messages.get(code))
        return response.json()

    def sign_in_with_password(self, email: str, password: str) -> dict:
        """
        이메일/비밀번호를 검증합니다.

        :return: localId(uid), idToken, email 등이 담긴 응답
        """
        return self._post("accounts:signInWithPassword", {
            "email": email,
            "password": password,
            "returnSecureToken": True
        })

    def sign_in_with_google(self, google_id_token: str, request_uri: str = "http://localhost") -> dict:
        """
        Google ID 토큰으로 로그인합니다. 처음 로그인하는 사용자는 Firebase Auth에 자동 생성됩니다.

        :return: localId, email, displayName, photoUrl, isNewUser 등이 담긴 응답
        """
        return self._post("accounts:signInWithIdp", {
            "postBody": f"id_token={google_id_token}&providerId=google.com",
            "requestUri": request_uri,
            "returnSecureToken": True,
            "returnIdpCredential": True
        })

    def send_email_verification(self, id_token: str) -> None:
        """가입 직후 사용자에게 이메일 인증 메일을 보냅니다."""
        self._post("accounts:sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": id_token})

    def send_password_reset(self, email: str) -> None:
        """비밀번호 재설정 메일을 보냅니다."""
        self._post("accounts:sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})
