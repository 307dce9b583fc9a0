# losty/models/claim.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from losty.utils.datetime_utils import DateTimeUtils

class ClaimStatus(Enum):
    """클레임 상태. 저장 시에는 항상 소문자 값을 사용합니다."""
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"

@dataclass
class Claim:
    """
    Firestore 'claims' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    다른 사용자의 게시물에 대해 '내 물건'이라고 요청한 기록입니다.
    """
    claim_id: str
    post_id: str
    post_title: str
    post_owner_id: str
    claimer_id: str
    claimer_name: str = "Someone"
    status: ClaimStatus = ClaimStatus.PENDING
    claimed_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> "Claim":
        # 예전 문서에는 'PENDING'처럼 대문자로 저장된 상태값이 남아 있을 수 있음
        status_str = str(data.get('status') or ClaimStatus.PENDING.value).lower()
        try:
            status = ClaimStatus(status_str)
        except ValueError:
            logging.warning(f"Invalid claim status '{status_str}' for claim {doc_id}. Defaulting to pending.")
            status = ClaimStatus.PENDING

        return cls(
            claim_id=data.get('claim_id') or doc_id or "",
            post_id=data.get('post_id') or "",
            post_title=data.get('post_title') or "",
            post_owner_id=data.get('post_owner_id') or "",
            claimer_id=data.get('claimer_id') or "",
            claimer_name=data.get('claimer_name') or "Someone",
            status=status,
            claimed_at=DateTimeUtils.coerce_datetime(data.get('claimed_at')),
        )
