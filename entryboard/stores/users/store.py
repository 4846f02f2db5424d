# entryboard/stores/users/store.py
import json
import logging
import os
from dataclasses import replace
from typing import Any, Dict, Optional, Tuple

from entryboard.core.errors import NotFound, PermissionDenied
from entryboard.models.user import User
from entryboard.stores.base import BaseStore
from entryboard.stores.users.schemas import ProfileUpdateSchema, RoleUpdateSchema

logger = logging.getLogger(__name__)

class UserStore(BaseStore):
    """
    로그인 세션과 사용자 목록을 관리하는 스토어.
    - 로그인 사용자는 session_path(JSON)에 저장되어 재시작 후에도 유지됩니다.
    - 프로필/권한 변경은 원격 트랜잭션이 성공한 뒤에만 캐시에 반영됩니다.
    """

    def __init__(self, gateway, auth_service, session_path: Optional[str] = None):
        super().__init__()
        self.gateway = gateway
        self.auth_service = auth_service
        self.session_path = session_path
        self._user: Optional[User] = None
        self._users = self._cache('users', key=lambda user: user.uid)
        self._load_session()

    # --- getters ---
    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def users(self) -> Tuple[User, ...]:
        return self._users.items

    @property
    def is_authenticated(self) -> bool:
        return bool(self._user and self._user.uid)

    @property
    def is_admin(self) -> bool:
        return bool(self._user and self._user.is_admin)

    @property
    def user_ref(self):
        """로그인 사용자의 문서 참조. 익명이면 None."""
        if not self.is_authenticated:
            return None
        return self.gateway.reference(f"users/{self._user.uid}")

    # --- 세션 저장 ---
    def _load_session(self) -> None:
        if not self.session_path or not os.path.exists(self.session_path):
            return
        try:
            with open(self.session_path, encoding='utf-8') as f:
                self._user = User.from_session(json.load(f))
            logger.info(f"저장된 로그인 세션 복원 (uid: {self._user.uid})")
        except (OSError, ValueError, KeyError) as e:
            logger.warning(f"세션 파일을 읽지 못해 로그아웃 상태로 시작합니다 ({self.session_path}): {e}")

    def _save_session(self) -> None:
        if not self.session_path:
            return
        os.makedirs(os.path.dirname(self.session_path) or '.', exist_ok=True)
        with open(self.session_path, 'w', encoding='utf-8') as f:
            json.dump(self._user.to_session(), f, ensure_ascii=False)

    def _clear_session(self) -> None:
        if self.session_path and os.path.exists(self.session_path):
            os.remove(self.session_path)

    def _set_user(self, user: Optional[User]) -> None:
        self._user = user
        if user is None:
            self._clear_session()
        else:
            self._save_session()
        self._notify('user', user)

    # --- actions ---
    def fetch_users(self) -> Tuple[User, ...]:
        with self._loading():
            docs = self.gateway.query('users')
            self._users.reset(User.from_firestore(doc['id'], doc) for doc in docs)
        return self.users

    def google_sign_in(self) -> User:
        """
        Google 로그인을 진행합니다. 신규 계정이면 사용자 문서를 먼저 만든 뒤 프로필을 불러옵니다.
        """
        with self._loading():
            result = self.auth_service.sign_in_interactive()
            path = f"users/{result.account_id}"

            if result.is_new_account:
                self.gateway.set(path, {
                    'email': result.profile.get('email'),
                    'displayName': result.profile.get('displayName'),
                    'photoURL': result.profile.get('photoURL'),
                })

            document = self.gateway.get(path)
            if document is None:
                raise NotFound(f"사용자 문서를 찾을 수 없습니다: {result.account_id}")

            self._set_user(User.from_firestore(document['id'], document))
            logger.info(f"로그인 완료 (uid: {result.account_id}, 신규: {result.is_new_account})")
        return self._user

    def update_profile(self, changes: Dict[str, Any]) -> User:
        """로그인 사용자의 프로필(displayName, photoURL)을 변경합니다."""
        changes = ProfileUpdateSchema().load(changes)

        with self._loading():
            if not self.is_authenticated:
                raise PermissionDenied("로그인한 사용자만 프로필을 변경할 수 있습니다.")
            uid = self._user.uid

            with self._record_locks.hold(uid):
                self.gateway.run_transaction(lambda txn: txn.update(f"users/{uid}", changes))
                self._set_user(User.from_firestore(uid, {**self._user.to_firestore(), **changes}))
        return self._user

    def update_role(self, uid: str, role: str) -> None:
        """
        사용자의 권한을 변경합니다. (관리자만 가능)
        클라이언트 검사는 참고용이며, 실제 강제는 백엔드 보안 규칙이 담당합니다.
        """
        data = RoleUpdateSchema().load({'uid': uid, 'role': role})

        with self._loading():
            if not self.is_admin:
                raise PermissionDenied("관리자만 사용자 권한을 변경할 수 있습니다.")

            with self._record_locks.hold(data['uid']):
                self.gateway.run_transaction(lambda txn: txn.update(f"users/{data['uid']}", {'role': data['role']}))

                self._users.update(data['uid'], lambda user: replace(user, role=data['role']))
                if self._user.uid == data['uid']:
                    self._set_user(replace(self._user, role=data['role']))

    def logout(self) -> None:
        """refresh token을 무효화한 뒤 세션과 상태를 초기화합니다."""
        with self._loading():
            if self._user:
                self.auth_service.sign_out(self._user.uid)
            self._users.reset(())
            self._set_user(None)
