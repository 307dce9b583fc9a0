# losty/services/live_query.py
"""
Firestore 실시간 구독(on_snapshot)을 HTTP 스트림(Server-Sent Events)으로 연결하는 모듈

- 스냅샷 콜백은 Firestore watch 스레드에서 호출되므로 queue.Queue로 요청 스레드에 넘깁니다.
- 응답 제너레이터가 닫히면(클라이언트 연결 종료) 구독을 해제합니다.
"""

import json
import logging
import queue
import threading
from typing import Any, Callable, Iterator, List, Optional

logger = logging.getLogger(__name__)


class LiveQuery:
    """하나의 Firestore 쿼리에 대한 실시간 구독 핸들."""

    def __init__(self, query, transform: Callable[[Any], Any]):
        """
        :param query: on_snapshot을 지원하는 Firestore 쿼리 또는 문서 참조
        :param transform: DocumentSnapshot 하나를 응답용 객체로 바꾸는 함수
        """
        self._query = query
        self._transform = transform
        self._queue: "queue.Queue[List[Any]]" = queue.Queue()
        self._watch = None
        self._lock = threading.Lock()
        self._closed = False

    def _on_snapshot(self, doc_snapshots, changes, read_time):
        try:
            self._queue.put([self._transform(doc) for doc in doc_snapshots])
        except Exception as e:
            logger.error(f"스냅샷 변환 실패: {e}", exc_info=True)

    def start(self) -> "LiveQuery":
        with self._lock:
            if self._watch is None and not self._closed:
                self._watch = self._query.on_snapshot(self._on_snapshot)
        return self

    def close(self) -> None:
        """구독을 해제합니다. 여러 번 호출해도 안전합니다."""
        with self._lock:
            self._closed = True
            if self._watch is not None:
                try:
                    self._watch.unsubscribe()
                except Exception as e:
                    logger.warning(f"스냅샷 구독 해제 실패: {e}")
                self._watch = None

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshots(self, heartbeat_seconds: float = 15.0) -> Iterator[Optional[List[Any]]]:
        """
        새 스냅샷이 올 때마다 변환된 목록을 내보냅니다.
        heartbeat_seconds 동안 변경이 없으면 None을 내보내 연결 유지 신호로 사용합니다.
        """
        self.start()
        while not self._closed:
            try:
                yield self._queue.get(timeout=heartbeat_seconds)
            except queue.Empty:
                yield None

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()


def format_sse(data: Any, event: Optional[str] = None) -> str:
    """SSE 프레임 하나를 만듭니다."""
    payload = json.dumps(data, ensure_ascii=False, default=str)
    frame = f"event: {event}\n" if event else ""
    return frame + f"data: {payload}\n\n"


def sse_stream(live_query: LiveQuery, event: str, render: Callable[[List[Any]], Any],
               heartbeat_seconds: float = 15.0) -> Iterator[str]:
    """
    LiveQuery를 SSE 문자열 스트림으로 바꿉니다.
    제너레이터가 닫히면(GeneratorExit) finally에서 구독이 해제됩니다.
    """
    try:
        for items in live_query.snapshots(heartbeat_seconds):
            if items is None:
                yield ": keep-alive\n\n"
                continue
            yield format_sse(render(items), event=event)
    finally:
        live_query.close()
        logger.info(f"실시간 스트림 종료: {event}")
