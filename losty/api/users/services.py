# losty/api/users/services.py
import logging
from typing import Optional
from firebase_admin import firestore, auth as firebase_auth

from losty.models.user import UserProfile
from losty.services.storage_service import StorageService

class UserService:
    """
    사용자 프로필 조회/수정을 담당하는 서비스 클래스.
    프로필 정보는 Firebase Auth 레코드와 'users' 문서 두 곳에 나뉘어 있습니다.
    """
    def __init__(self, storage_service: StorageService, db=None):
        self.db = db or firestore.client()
        self.users_ref = self.db.collection('users')
        self.storage_service = storage_service

    def _get_auth_record(self, user_id: str):
        try:
            return firebase_auth.get_user(user_id)
        except firebase_auth.UserNotFoundError:
            return None
        except Exception as e:
            logging.warning(f"Firebase Auth 사용자 조회 실패, 문서 정보로 대체합니다 (user_id: {user_id}): {e}")
            return None

    def get_user_profile(self, user_id: str) -> Optional[UserProfile]:
        """
        Auth 레코드를 우선으로, 없는 값은 'users' 문서로 채워 프로필을 만듭니다.
        - display_name: Auth displayName -> 문서 username -> "User"
        - email: Auth email -> 문서 email -> ""
        - photo_url: Auth photoUrl -> 문서 photo_url -> ""
        - phone_number: 문서 phone_number
        """
        record = self._get_auth_record(user_id)
        user_doc = self.users_ref.document(user_id).get()
        if record is None and not user_doc.exists:
            return None

        doc_data = user_doc.to_dict() if user_doc.exists else {}
        return UserProfile(
            uid=user_id,
            display_name=(record.display_name if record else None) or doc_data.get('username') or "User",
            email=(record.email if record else None) or doc_data.get('email') or "",
            photo_url=(record.photo_url if record else None) or doc_data.get('photo_url') or "",
            phone_number=doc_data.get('phone_number') or ""
        )

    def get_user_name(self, user_id: str) -> str:
        """다른 사용자의 표시 이름을 조회합니다. 실패하면 "User"."""
        try:
            user_doc = self.users_ref.document(user_id).get()
            if not user_doc.exists:
                return "User"
            data = user_doc.to_dict()
            return data.get('display_name') or data.get('username') or "User"
        except Exception as e:
            logging.error(f"사용자 이름 조회 실패 (user_id: {user_id}): {e}")
            return "User"

    def update_display_name(self, user_id: str, new_name: str) -> Optional[UserProfile]:
        """Auth 프로필과 'users' 문서의 이름을 함께 변경합니다."""
        try:
            firebase_auth.update_user(user_id, display_name=new_name)
            self.users_ref.document(user_id).set(
                {'username': new_name, 'display_name': new_name}, merge=True
            )
        except Exception as e:
            logging.error(f"이름 변경 실패 (user_id: {user_id}): {e}", exc_info=True)
            raise
        return self.get_user_profile(user_id)

    def update_profile_image(self, user_id: str, file_path: str) -> Optional[UserProfile]:
        """
        업로드된 프로필 사진을 공개로 전환하고 Auth/문서에 URL을 기록합니다.

        :param file_path: Pre-signed URL로 업로드한 'profile_pictures/{uid}/...' 경로
        """
        owned_path = self.storage_service.ensure_owned_path(user_id, "profile_picture", file_path)
        photo_url = self.storage_service.make_public_and_get_url(owned_path)
        try:
            firebase_auth.update_user(user_id, photo_url=photo_url)
            self.users_ref.document(user_id).set({'photo_url': photo_url}, merge=True)
        except Exception as e:
            logging.error(f"프로필 이미지 업데이트 실패 (user_id: {user_id}): {e}", exc_info=True)
            raise
        return self.get_user_profile(user_id)
