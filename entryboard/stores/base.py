# entryboard/stores/base.py
"""
스토어 공통 기반

- CollectionCache: 레코드의 순서 있는 불변 시퀀스. 쓰기마다 새 튜플로 교체합니다.
- KeyedLock: 같은 레코드 ID에 대한 변경을 직렬화합니다.
- BaseStore: 로딩 플래그, 구독자 알림, 캐시/락 보관.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CollectionCache(Generic[T]):
    """
    스토어 내부 캐시. 외부에는 items(튜플) 투영만 노출합니다.
    이전에 얻은 투영은 이후 쓰기의 영향을 받지 않습니다.
    """

    def __init__(self, key: Callable[[T], str], on_change: Optional[Callable[[Tuple[T, ...]], None]] = None):
        self._key = key
        self._items: Tuple[T, ...] = ()
        self._lock = threading.RLock()
        self._on_change = on_change

    @property
    def items(self) -> Tuple[T, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def index_of(self, record_id: str) -> int:
        for index, record in enumerate(self._items):
            if self._key(record) == record_id:
                return index
        return -1

    def find(self, record_id: str) -> Optional[T]:
        index = self.index_of(record_id)
        return self._items[index] if index != -1 else None

    def _swap(self, items: Tuple[T, ...]) -> None:
        self._items = items
        if self._on_change:
            self._on_change(items)

    def reset(self, records) -> None:
        with self._lock:
            self._swap(tuple(records))

    def append(self, record: T) -> None:
        with self._lock:
            self._swap(self._items + (record,))

    def replace(self, record: T) -> bool:
        """같은 ID의 레코드 한 칸만 교체합니다. 대상이 없으면 False."""
        with self._lock:
            index = self.index_of(self._key(record))
            if index == -1:
                return False
            self._swap(self._items[:index] + (record,) + self._items[index + 1:])
            return True

    def upsert(self, record: T) -> None:
        """같은 ID가 있으면 교체하고, 없으면 끝에 추가합니다. 레코드는 항상 한 번만 존재합니다."""
        with self._lock:
            if not self.replace(record):
                self.append(record)

    def update(self, record_id: str, fn: Callable[[T], T]) -> Optional[T]:
        """현재 레코드에 fn을 적용한 결과로 교체합니다. 캐시 락 안에서 읽고 쓰므로 갱신이 유실되지 않습니다."""
        with self._lock:
            index = self.index_of(record_id)
            if index == -1:
                return None
            record = fn(self._items[index])
            self._swap(self._items[:index] + (record,) + self._items[index + 1:])
            return record

    def remove(self, record_id: str) -> bool:
        with self._lock:
            index = self.index_of(record_id)
            if index == -1:
                return False
            self._swap(self._items[:index] + self._items[index + 1:])
            return True


class KeyedLock:
    """레코드 ID별 락. 사용 중인 ID가 없으면 락 객체를 정리합니다."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._holders: Dict[str, int] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._holders[key] = self._holders.get(key, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._holders[key] -= 1
                if not self._holders[key]:
                    del self._holders[key]
                    del self._locks[key]


class BaseStore:
    """
    낙관적 변경 컨트롤러의 공통 기반.

    각 액션은 `with self._loading():` 블록 안에서 원격 호출을 수행하고,
    원격 호출이 성공한 뒤에만 캐시를 패치합니다.
    """

    def __init__(self):
        self._pending = 0
        self._is_loading = False
        self._state_lock = threading.Lock()
        self._record_locks = KeyedLock()
        self._subscribers: List[Callable[[str, Any], None]] = []

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    def subscribe(self, callback: Callable[[str, Any], None]) -> Callable[[], None]:
        """
        상태 변경 알림을 구독합니다. callback(name, value)는 로딩 플래그와 캐시가 바뀔 때마다 호출됩니다.
        반환값은 구독 해제 함수입니다.
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def _notify(self, name: str, value: Any) -> None:
        for callback in list(self._subscribers):
            try:
                callback(name, value)
            except Exception as e:
                logger.error(f"{type(self).__name__} 구독자 처리 실패 ({name}): {e}", exc_info=True)

    def _cache(self, name: str, key: Callable[[Any], str]) -> CollectionCache:
        return CollectionCache(key, on_change=lambda items: self._notify(name, items))

    def _set_loading(self, value: bool) -> None:
        self._is_loading = value
        self._notify('is_loading', value)

    @contextmanager
    def _loading(self) -> Iterator[None]:
        """
        로딩 플래그를 켜고, 어떤 경로로 빠져나가든 반드시 끕니다.
        같은 스토어에서 동시에 실행 중인 액션이 있으면 마지막 액션이 끝날 때 꺼집니다.
        """
        with self._state_lock:
            self._pending += 1
            if self._pending == 1:
                self._set_loading(True)
        try:
            yield
        finally:
            with self._state_lock:
                self._pending -= 1
                if self._pending == 0:
                    self._set_loading(False)

    @contextmanager
    def _mutating(self, record_id: str) -> Iterator[None]:
        """로딩 플래그와 레코드 락을 함께 잡습니다."""
        with self._loading(), self._record_locks.hold(record_id):
            yield
