# entryboard/services/firestore_service.py
import logging
from typing import Any, Callable, Dict, List, Optional
from firebase_admin import firestore

from entryboard.core.errors import StoreError, RemoteReadFailed, RemoteWriteFailed
from entryboard.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)


class _TransactionView:
    """run_transaction 콜백에 전달되는 트랜잭션 래퍼. 경로 문자열로 문서를 다룹니다."""

    def __init__(self, gateway: 'FirestoreGateway', transaction):
        self._gateway = gateway
        self._transaction = transaction

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        snapshot = self._gateway._ref(path).get(transaction=self._transaction)
        return self._gateway._to_dict(snapshot)

    def set(self, path: str, data: Dict[str, Any]) -> None:
        self._transaction.set(self._gateway._ref(path), DateTimeUtils.for_firestore(data))

    def update(self, path: str, data: Dict[str, Any]) -> None:
        self._transaction.update(self._gateway._ref(path), DateTimeUtils.for_firestore(data))

    def delete(self, path: str) -> None:
        self._transaction.delete(self._gateway._ref(path))


class FirestoreGateway:
    """
    Firestore CRUD/쿼리/트랜잭션 호출을 감싸는 얇은 게이트웨이.

    - 조회 실패는 RemoteReadFailed, 쓰기 실패는 RemoteWriteFailed로 변환됩니다.
    - 조회 결과는 `{'id': 문서 ID, ...필드}` 형태의 dict이며, 문서가 없으면 None입니다.
    - 타임아웃은 Firestore 클라이언트 라이브러리 기본값을 따릅니다.
    """

    def __init__(self, client=None):
        self.db = client or firestore.client()

    def _ref(self, path_or_ref: Any):
        if isinstance(path_or_ref, str):
            return self.db.document(path_or_ref)
        return path_or_ref

    @staticmethod
    def _to_dict(snapshot) -> Optional[Dict[str, Any]]:
        if not snapshot.exists:
            return None
        return {'id': snapshot.id, **DateTimeUtils.from_firestore(snapshot.to_dict())}

    def reference(self, path: str):
        """다른 문서에 저장할 문서 참조를 만듭니다. (원격 호출 없음)"""
        return self.db.document(path)

    def get(self, path_or_ref: Any) -> Optional[Dict[str, Any]]:
        try:
            return self._to_dict(self._ref(path_or_ref).get())
        except Exception as e:
            logger.error(f"Firestore 문서 조회 실패 ({path_or_ref}): {e}", exc_info=True)
            raise RemoteReadFailed(f"문서를 조회하지 못했습니다: {path_or_ref}") from e

    def query(self, collection_path: str, field: Optional[str] = None, op: Optional[str] = None, value: Any = None) -> List[Dict[str, Any]]:
        try:
            query = self.db.collection(collection_path)
            if field is not None:
                query = query.where(field, op, value)
            return [self._to_dict(doc) for doc in query.stream()]
        except Exception as e:
            logger.error(f"Firestore 쿼리 실패 ({collection_path}, {field} {op} {value}): {e}", exc_info=True)
            raise RemoteReadFailed(f"컬렉션을 조회하지 못했습니다: {collection_path}") from e

    def set(self, path: str, data: Dict[str, Any]) -> None:
        """문서가 없으면 생성하고, 있으면 덮어씁니다."""
        try:
            self._ref(path).set(DateTimeUtils.for_firestore(data))
        except Exception as e:
            logger.error(f"Firestore 문서 저장 실패 ({path}): {e}", exc_info=True)
            raise RemoteWriteFailed(f"문서를 저장하지 못했습니다: {path}") from e

    def update(self, path: str, data: Dict[str, Any]) -> None:
        try:
            self._ref(path).update(DateTimeUtils.for_firestore(data))
        except Exception as e:
            logger.error(f"Firestore 문서 수정 실패 ({path}): {e}", exc_info=True)
            raise RemoteWriteFailed(f"문서를 수정하지 못했습니다: {path}") from e

    def delete(self, path: str) -> None:
        try:
            self._ref(path).delete()
        except Exception as e:
            logger.error(f"Firestore 문서 삭제 실패 ({path}): {e}", exc_info=True)
            raise RemoteWriteFailed(f"문서를 삭제하지 못했습니다: {path}") from e

    def add_to_array(self, path: str, field: str, *values: Any) -> None:
        """배열 필드에 값을 합집합으로 추가합니다. 이미 있는 값은 다시 추가되지 않습니다."""
        self.update(path, {field: firestore.ArrayUnion(list(values))})

    def remove_from_array(self, path: str, field: str, *values: Any) -> None:
        self.update(path, {field: firestore.ArrayRemove(list(values))})

    def run_transaction(self, fn: Callable[[_TransactionView], Any]) -> Any:
        """
        fn을 Firestore 트랜잭션 안에서 실행합니다. 경합 시 라이브러리가 fn을 재실행합니다.
        fn이 던진 StoreError(PermissionDenied, VersionConflict 등)는 그대로 전달됩니다.
        """
        transaction = self.db.transaction()

        @firestore.transactional
        def _run_in_transaction(transaction):
            return fn(_TransactionView(self, transaction))

        try:
            return _run_in_transaction(transaction)
        except StoreError:
            raise
        except Exception as e:
            logger.error(f"Firestore 트랜잭션 실패: {e}", exc_info=True)
            raise RemoteWriteFailed("트랜잭션을 완료하지 못했습니다.") from e
