# losty/utils/datetime_utils.py
"""
프로젝트 전체에서 일관된 시간 처리를 위한 유틸리티 모듈

- 백엔드의 모든 시간은 UTC timezone-aware datetime으로 통일
- Firestore 저장/조회 시 변환 규칙을 한 곳에서 관리
- 모바일 클라이언트가 남긴 밀리초(epoch ms) 값과의 호환
"""

import logging
from datetime import datetime, date, timezone, time
from enum import Enum
from typing import Any, Optional, Union
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

# 1970-01-01T00:00:00Z, 값이 없는 시간 필드의 기본값
EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        ISO 포맷 문자열을 UTC datetime 객체로 파싱

        지원 포맷:
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00+09:00
        - 2024-01-15T10:30:00
        """
        try:
            if not iso_string:
                raise ValueError("빈 문자열은 파싱할 수 없습니다")

            if iso_string.endswith('Z'):
                iso_string = iso_string[:-1] + '+00:00'

            dt = dateutil_parser.isoparse(iso_string)
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return dt.astimezone(timezone.utc)

        except Exception as e:
            logger.error(f"ISO datetime 파싱 실패: {iso_string} - {e}")
            raise ValueError(f"잘못된 ISO 날짜 형식입니다: {iso_string}")

    @staticmethod
    def from_timestamp_ms(timestamp_ms: Union[int, float]) -> datetime:
        """Unix timestamp(밀리초)를 UTC datetime으로 변환"""
        if isinstance(timestamp_ms, bool) or not isinstance(timestamp_ms, (int, float)):
            raise ValueError("timestamp_ms는 숫자여야 합니다")
        return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)

    @staticmethod
    def coerce_datetime(value: Any, default: Optional[datetime] = EPOCH) -> Optional[datetime]:
        """
        Firestore 문서의 시간 필드를 datetime으로 정규화합니다.

        문서마다 저장 형식이 다를 수 있어 아래를 모두 허용합니다.
        - datetime / Firestore DatetimeWithNanoseconds
        - epoch 밀리초 정수 (모바일 앱이 직접 기록한 문서)
        - ISO 문자열
        값이 없거나 해석할 수 없으면 default를 반환합니다.
        """
        if value is None:
            return default
        try:
            if isinstance(value, datetime):
                if value.tzinfo is None:
                    return value.replace(tzinfo=timezone.utc)
                return value.astimezone(timezone.utc)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return DateTimeUtils.from_timestamp_ms(value)
            if isinstance(value, str):
                return DateTimeUtils.parse_iso_datetime(value)
        except ValueError:
            logger.warning(f"시간 필드를 해석할 수 없어 기본값을 사용합니다: {value!r}")
            return default
        return default

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        Firestore 저장을 위해 객체의 날짜/시간 필드를 변환

        - date -> datetime (00:00:00 UTC)
        - timezone-naive datetime -> UTC datetime
        - Enum -> value
        - dict/list 내부 재귀적 변환
        """
        if isinstance(obj, datetime):
            if obj.tzinfo is None:
                return obj.replace(tzinfo=timezone.utc)
            return obj.astimezone(timezone.utc)
        if isinstance(obj, date):
            return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [DateTimeUtils.for_firestore(item) for item in obj]
        return obj
