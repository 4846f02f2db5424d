# entryboard/conftest.py
"""
스토어 테스트용 인메모리 게이트웨이와 공용 fixture.

FakeDocumentGateway / FakeBlobGateway는 실제 게이트웨이와 같은 메서드를 제공하며,
fail(method, path)로 특정 호출이 실패하도록 만들 수 있습니다.
"""

import copy
import itertools
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from entryboard.core.errors import NotFound, RemoteReadFailed, RemoteWriteFailed, StoreError
from entryboard.services.error_service import ErrorService
from entryboard.services.google_auth_service import SignInResult
from entryboard.stores.comments import CommentStore
from entryboard.stores.entries import EntryStore
from entryboard.stores.prompts import PromptStore
from entryboard.stores.reactions import LikeStore, ShareStore
from entryboard.stores.saga import OperationLog
from entryboard.stores.users import IdentityResolver, UserStore
from entryboard.utils.datetime_utils import DateTimeUtils

FINGERPRINT_KEY = 'testing-fingerprint-key'
CALLER_ADDRESS = '198.51.100.7'

_READS = ('get', 'query', 'download', 'exists')


@dataclass(frozen=True)
class FakeRef:
    """Firestore DocumentReference 대용. 경로가 같으면 같은 참조입니다."""
    path: str

    @property
    def id(self) -> str:
        return self.path.rsplit('/', 1)[-1]


class _Failures:
    def __init__(self):
        self._failures: Dict[Tuple[str, str], BaseException] = {}

    def fail(self, method: str, path: str, error: Optional[BaseException] = None) -> None:
        if error is None:
            error = RemoteReadFailed(f"{method} {path}") if method in _READS else RemoteWriteFailed(f"{method} {path}")
        self._failures[(method, path)] = error

    def recover(self, method: str, path: str) -> None:
        self._failures.pop((method, path), None)

    def check(self, method: str, path: str) -> None:
        error = self._failures.get((method, path))
        if error is not None:
            raise error


class _FakeTransaction:
    def __init__(self, gateway: 'FakeDocumentGateway'):
        self._gateway = gateway
        self._writes: List[Callable[[], None]] = []

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        return self._gateway.get(path)

    def set(self, path: str, data: Dict[str, Any]) -> None:
        self._writes.append(lambda: self._gateway.set(path, data))

    def update(self, path: str, data: Dict[str, Any]) -> None:
        self._writes.append(lambda: self._gateway.update(path, data))

    def delete(self, path: str) -> None:
        self._writes.append(lambda: self._gateway.delete(path))

    def commit(self) -> None:
        for write in self._writes:
            write()


class FakeDocumentGateway(_Failures):
    """경로 -> 문서 dict 저장소. 조회 결과는 FirestoreGateway처럼 'id'를 포함한 사본입니다."""

    def __init__(self):
        super().__init__()
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str]] = []

    @staticmethod
    def _path(path_or_ref: Any) -> str:
        return path_or_ref if isinstance(path_or_ref, str) else path_or_ref.path

    def _enter(self, method: str, path_or_ref: Any) -> str:
        path = self._path(path_or_ref)
        self.calls.append((method, path))
        self.check(method, path)
        return path

    def reference(self, path: str) -> FakeRef:
        return FakeRef(path)

    def get(self, path_or_ref: Any) -> Optional[Dict[str, Any]]:
        path = self._enter('get', path_or_ref)
        if path not in self.docs:
            return None
        return {'id': FakeRef(path).id, **copy.deepcopy(self.docs[path])}

    def query(self, collection_path: str, field: Optional[str] = None, op: Optional[str] = None, value: Any = None) -> List[Dict[str, Any]]:
        self._enter('query', collection_path)
        results = []
        for path, data in self.docs.items():
            if path.rsplit('/', 1)[0] != collection_path:
                continue
            if field is not None and not (op == '==' and data.get(field) == value):
                continue
            results.append({'id': FakeRef(path).id, **copy.deepcopy(data)})
        return results

    def set(self, path: str, data: Dict[str, Any]) -> None:
        path = self._enter('set', path)
        self.docs[path] = copy.deepcopy(data)

    def update(self, path: str, data: Dict[str, Any]) -> None:
        path = self._enter('update', path)
        if path not in self.docs:
            raise RemoteWriteFailed(f"문서가 없습니다: {path}")
        self.docs[path].update(copy.deepcopy(data))

    def delete(self, path: str) -> None:
        path = self._enter('delete', path)
        self.docs.pop(path, None)

    def add_to_array(self, path: str, field: str, *values: Any) -> None:
        path = self._enter('add_to_array', path)
        if path not in self.docs:
            raise RemoteWriteFailed(f"문서가 없습니다: {path}")
        items = list(self.docs[path].get(field) or [])
        items.extend(v for v in values if v not in items)
        self.docs[path][field] = items

    def remove_from_array(self, path: str, field: str, *values: Any) -> None:
        path = self._enter('remove_from_array', path)
        if path not in self.docs:
            raise RemoteWriteFailed(f"문서가 없습니다: {path}")
        self.docs[path][field] = [v for v in self.docs[path].get(field) or [] if v not in values]

    def run_transaction(self, fn: Callable[[_FakeTransaction], Any]) -> Any:
        self.calls.append(('run_transaction', ''))
        self.check('run_transaction', '')
        transaction = _FakeTransaction(self)
        try:
            result = fn(transaction)
            transaction.commit()
        except StoreError:
            raise
        except Exception as e:
            raise RemoteWriteFailed("트랜잭션을 완료하지 못했습니다.") from e
        return result


class FakeBlobGateway(_Failures):
    """경로 -> (bytes, content_type) 저장소."""

    def __init__(self):
        super().__init__()
        self.blobs: Dict[str, Tuple[bytes, Optional[str]]] = {}

    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        self.check('upload', path)
        self.blobs[path] = (data, content_type)

    def exists(self, path: str) -> bool:
        self.check('exists', path)
        return path in self.blobs

    def download(self, path: str) -> Optional[Tuple[bytes, Optional[str]]]:
        self.check('download', path)
        return self.blobs.get(path)

    def delete(self, path: str) -> None:
        self.check('delete', path)
        if path not in self.blobs:
            raise RemoteWriteFailed(f"파일이 없습니다: {path}")
        del self.blobs[path]

    def get_download_url(self, path: str) -> str:
        if not self.exists(path):
            raise NotFound(f"파일을 찾을 수 없습니다: {path}")
        return f"https://storage.test/{path}"


class FakeAddressLookup:
    def __init__(self, address: str = CALLER_ADDRESS):
        self.address = address
        self.calls = 0

    def fetch_caller_address(self) -> str:
        self.calls += 1
        return self.address


class FakeAuthService:
    """sign_in_interactive가 next_result를 그대로 돌려주는 인증 서비스."""

    def __init__(self):
        self.next_result: Optional[SignInResult] = None
        self.signed_out: List[str] = []

    def sign_in_interactive(self) -> SignInResult:
        if self.next_result is None:
            raise RemoteReadFailed("로그인이 취소되었습니다.")
        return self.next_result

    def sign_out(self, account_id: str) -> None:
        self.signed_out.append(account_id)


# --- fixtures ---
@pytest.fixture(autouse=True)
def clock(monkeypatch):
    """DateTimeUtils.now가 호출될 때마다 1초씩 흐르는 시계. 같은 주체의 연속 작성도 ID가 겹치지 않습니다."""
    start = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    ticks = itertools.count()
    monkeypatch.setattr(DateTimeUtils, "now", staticmethod(lambda: start + timedelta(seconds=next(ticks))))
    return start


@pytest.fixture
def gateway():
    return FakeDocumentGateway()


@pytest.fixture
def blobs():
    return FakeBlobGateway()


@pytest.fixture
def address_lookup():
    return FakeAddressLookup()


@pytest.fixture
def auth_service():
    return FakeAuthService()


@pytest.fixture
def error_service():
    return ErrorService()


@pytest.fixture
def user_store(gateway, auth_service):
    return UserStore(gateway, auth_service)


@pytest.fixture
def identity(user_store, address_lookup, gateway):
    return IdentityResolver(user_store, address_lookup, FINGERPRINT_KEY, gateway)


@pytest.fixture
def operation_log(gateway):
    return OperationLog(gateway)


@pytest.fixture
def prompt_store(gateway):
    return PromptStore(gateway)


@pytest.fixture
def like_store(gateway, identity):
    return LikeStore(gateway, identity)


@pytest.fixture
def share_store(gateway, identity):
    return ShareStore(gateway, identity)


@pytest.fixture
def comment_store(gateway, identity):
    return CommentStore(gateway, identity)


@pytest.fixture
def entry_store(gateway, blobs, identity, prompt_store, like_store, share_store, error_service, operation_log):
    return EntryStore(gateway, blobs, identity, prompt_store, like_store, share_store, error_service, operation_log)


@pytest.fixture
def sign_in(gateway, auth_service, user_store):
    """users/{uid} 문서를 만들고 google_sign_in으로 로그인합니다."""
    def _sign_in(uid: str, display_name: Optional[str] = None, role: Optional[str] = None):
        data = {'email': f"{uid}@example.com", 'displayName': display_name or uid, 'photoURL': None}
        if role is not None:
            data['role'] = role
        gateway.docs[f"users/{uid}"] = data
        auth_service.next_result = SignInResult(account_id=uid, is_new_account=False, profile=data)
        return user_store.google_sign_in()
    return _sign_in


@pytest.fixture
def loading_events():
    """스토어를 구독해 is_loading 알림 값을 순서대로 모읍니다."""
    def _watch(store) -> List[bool]:
        events: List[bool] = []
        store.subscribe(lambda name, value: events.append(value) if name == 'is_loading' else None)
        return events
    return _watch
