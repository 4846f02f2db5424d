# entryboard/services/error_service.py
import logging
import threading
from typing import Tuple

logger = logging.getLogger(__name__)

class ErrorService:
    """
    스토어에서 발생한 오류를 모아두는 공용 오류 수집기.
    report는 어떤 경우에도 예외를 던지지 않습니다. (호출한 작업의 원래 오류를 가리지 않도록)
    """

    def __init__(self, max_errors: int = 50):
        self._errors: Tuple[BaseException, ...] = ()
        self._max_errors = max_errors
        self._lock = threading.Lock()

    @property
    def errors(self) -> Tuple[BaseException, ...]:
        return self._errors

    @property
    def last_error(self):
        return self._errors[-1] if self._errors else None

    def report(self, error: BaseException) -> None:
        try:
            with self._lock:
                self._errors = (self._errors + (error,))[-self._max_errors:]
            logger.error(f"오류 보고: {type(error).__name__}: {error}")
        except Exception as e:
            logger.warning(f"오류 보고 처리 중 예외 발생 (무시됨): {e}")

    def clear(self) -> None:
        with self._lock:
            self._errors = ()
