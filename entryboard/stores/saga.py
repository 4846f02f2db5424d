# entryboard/stores/saga.py
"""
다단계 원격 작업(saga)과 작업 로그

엔트리 생성/삭제처럼 여러 원격 호출로 이루어진 작업을 단계별로 실행합니다.
한 단계가 실패하면 이미 완료된 단계의 보상(compensation)을 역순으로 실행하고,
진행 상황은 Firestore 작업 로그에 남겨 중간에 프로세스가 죽어도 미완료 작업을 찾을 수 있게 합니다.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from entryboard.core.errors import PartialCascadeFailure
from entryboard.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

PENDING = 'pending'
COMMITTED = 'committed'
ABORTED = 'aborted'          # 첫 단계에서 실패해 원격 상태 변화가 없음
COMPENSATED = 'compensated'  # 완료된 단계를 모두 되돌림
FAILED = 'failed'            # 보상 중 일부가 실패해 원격 상태가 불일치할 수 있음


class OperationLog:
    """saga 진행 상황을 Firestore 컬렉션에 기록합니다."""

    def __init__(self, gateway, collection: str = 'operations'):
        self.gateway = gateway
        self.collection = collection

    def _path(self, operation_id: str) -> str:
        return f"{self.collection}/{operation_id}"

    def start(self, name: str, context: Dict[str, Any]) -> str:
        """작업 시작을 기록합니다. 기록에 실패하면 어떤 단계도 실행하지 않도록 예외를 그대로 전달합니다."""
        operation_id = str(uuid.uuid4())
        self.gateway.set(self._path(operation_id), {
            'name': name,
            'status': PENDING,
            'steps': [],
            'context': context,
            'created': DateTimeUtils.now(),
        })
        return operation_id

    def record_step(self, operation_id: str, step: str) -> None:
        try:
            self.gateway.add_to_array(self._path(operation_id), 'steps', step)
        except Exception as e:
            logger.warning(f"작업 로그 단계 기록 실패 (operation: {operation_id}, step: {step}): {e}")

    def finish(self, operation_id: str, status: str, error: Optional[str] = None) -> None:
        data = {'status': status, 'updated': DateTimeUtils.now()}
        if error:
            data['error'] = error
        try:
            self.gateway.update(self._path(operation_id), data)
        except Exception as e:
            logger.warning(f"작업 로그 상태 기록 실패 (operation: {operation_id}, status: {status}): {e}")

    def pending(self) -> List[Dict[str, Any]]:
        """완료되지 못한(pending) 작업 목록. 비정상 종료 후 복구 대상 확인에 사용합니다."""
        return self.gateway.query(self.collection, 'status', '==', PENDING)


@dataclass
class SagaStep:
    name: str
    action: Callable[[], Any]
    compensation: Optional[Callable[[Any], None]] = None # action의 반환값을 받아 되돌립니다.


class Saga:
    """
    단계들을 순서대로 실행합니다.

    - 첫 단계가 실패하면 원래 예외를 그대로 전달합니다. (원격 상태 변화 없음)
    - 이후 단계가 실패하면 완료된 단계를 역순으로 보상하고 PartialCascadeFailure를 던집니다.
    """

    def __init__(self, name: str, operation_log: Optional[OperationLog] = None, context: Optional[Dict[str, Any]] = None):
        self.name = name
        self.operation_log = operation_log
        self.context = context or {}
        self.steps: List[SagaStep] = []

    def step(self, name: str, action: Callable[[], Any], compensation: Optional[Callable[[Any], None]] = None) -> 'Saga':
        self.steps.append(SagaStep(name, action, compensation))
        return self

    def _compensate(self, completed: List[Tuple[SagaStep, Any]]) -> bool:
        all_compensated = True
        for step, result in reversed(completed):
            if step.compensation is None:
                continue
            try:
                step.compensation(result)
                logger.info(f"'{self.name}' 작업의 '{step.name}' 단계 보상 완료")
            except Exception as e:
                all_compensated = False
                logger.error(f"'{self.name}' 작업의 '{step.name}' 단계 보상 실패: {e}", exc_info=True)
        return all_compensated

    def run(self) -> Dict[str, Any]:
        operation_id = self.operation_log.start(self.name, self.context) if self.operation_log else None
        completed: List[Tuple[SagaStep, Any]] = []

        for step in self.steps:
            try:
                result = step.action()
            except Exception as e:
                logger.error(f"'{self.name}' 작업의 '{step.name}' 단계 실패: {e}")
                if not completed:
                    if operation_id:
                        self.operation_log.finish(operation_id, ABORTED, error=str(e))
                    raise

                compensated = self._compensate(completed)
                if operation_id:
                    self.operation_log.finish(operation_id, COMPENSATED if compensated else FAILED, error=str(e))
                raise PartialCascadeFailure(
                    self.name, step.name, [s.name for s, _ in completed], compensated, cause=e
                ) from e

            completed.append((step, result))
            if operation_id:
                self.operation_log.record_step(operation_id, step.name)

        if operation_id:
            self.operation_log.finish(operation_id, COMMITTED)
        return {s.name: result for s, result in completed}
