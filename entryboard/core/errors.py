# entryboard/core/errors.py
"""
스토어 작업에서 발생하는 오류 계층.

UI 계층은 `retryable` 값으로 재시도 버튼 노출 여부를 결정합니다.
(PermissionDenied는 재시도해도 결과가 같고, RemoteWriteFailed는 일시적 오류일 수 있습니다.)
"""
from typing import List, Optional


class StoreError(Exception):
    """모든 스토어 오류의 기반 클래스."""
    retryable = False


class RemoteReadFailed(StoreError):
    """백엔드 조회(get/query) 또는 외부 조회 호출이 실패한 경우."""
    retryable = True


class RemoteWriteFailed(StoreError):
    """백엔드 쓰기(set/update/delete/transaction/업로드)가 실패한 경우."""
    retryable = True


class PermissionDenied(StoreError, PermissionError):
    """작성자가 아닌 사용자가 수정/삭제를 시도한 경우."""


class NotFound(StoreError, ValueError):
    """참조한 엔트리, 프롬프트, 댓글이 존재하지 않는 경우."""


class VersionConflict(StoreError):
    """다른 세션이 먼저 엔트리를 수정하여 버전이 맞지 않는 경우."""

    def __init__(self, entry_id: str, expected: int, actual: int):
        super().__init__(f"엔트리 버전 충돌 (entry_id: {entry_id}, expected: {expected}, actual: {actual})")
        self.entry_id = entry_id
        self.expected = expected
        self.actual = actual


class PartialCascadeFailure(StoreError):
    """
    다단계 작업(saga)의 한 단계가 실패한 경우.

    :param step: 실패한 단계 이름
    :param completed: 실패 전에 완료된 단계 이름 목록
    :param compensated: 완료된 단계의 보상(되돌리기)이 모두 성공했는지 여부
    """

    def __init__(self, operation: str, step: str, completed: List[str], compensated: bool, cause: Optional[BaseException] = None):
        super().__init__(
            f"'{operation}' 작업의 '{step}' 단계 실패 (완료된 단계: {completed}, 보상 성공: {compensated})"
        )
        self.operation = operation
        self.step = step
        self.completed = completed
        self.compensated = compensated
        self.cause = cause

    @property
    def retryable(self) -> bool:
        # 보상이 끝나 원격 상태가 작업 전으로 돌아간 경우에만 재시도가 안전합니다.
        return self.compensated and getattr(self.cause, 'retryable', False)
