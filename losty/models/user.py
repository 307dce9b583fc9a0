# losty/models/user.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from losty.utils.datetime_utils import DateTimeUtils

@dataclass
class User:
    """
    Firestore 'users' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    문서 ID는 Firebase Auth uid와 같습니다.
    """
    uid: str
    email: str
    username: str
    full_name: str = ""
    display_name: str = ""
    phone_number: str = ""
    photo_url: str = ""
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    fcm_token: Optional[str] = None # 클라이언트가 직접 기록, 서버는 푸시 발송 시 읽기만 함

@dataclass
class UserProfile:
    """
    Auth 사용자 레코드와 'users' 문서를 합쳐 만든 화면 표시용 프로필.
    """
    uid: str
    display_name: str = "User"
    email: str = ""
    photo_url: str = ""
    phone_number: str = ""
