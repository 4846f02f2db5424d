# entryboard/stores/users/identity.py
import logging
from typing import Any, Optional, Union

from entryboard.core.security import fingerprint
from entryboard.models.actor import Actor
from entryboard.models.user import User

logger = logging.getLogger(__name__)

class IdentityResolver:
    """
    쓰기 작업의 주체(Actor)를 결정합니다.

    - 로그인 세션이 있으면 Authenticated를 반환합니다.
    - 없으면 네트워크 주소를 조회해 키가 있는 해시로 만든 지문으로 Anonymous를 반환합니다.
    조회한 주소는 user_ip로 보관하지만 Actor는 보관하지 않습니다. 모든 쓰기 경로가 매번 다시 결정합니다.
    """

    def __init__(self, user_store, address_lookup, fingerprint_key: str, gateway):
        if not fingerprint_key:
            raise ValueError("ANON_FINGERPRINT_KEY 설정이 .env 또는 설정 파일에 필요합니다.")
        self.user_store = user_store
        self.address_lookup = address_lookup
        self.gateway = gateway
        self._fingerprint_key = fingerprint_key
        self._user_ip = ''

    @property
    def user_ip(self) -> str:
        return self._user_ip

    @property
    def user_ip_hash(self) -> Optional[str]:
        if not self._user_ip:
            return None
        return fingerprint(self._user_ip, self._fingerprint_key)

    def fetch_user_ip(self) -> str:
        self._user_ip = self.address_lookup.fetch_caller_address()
        return self._user_ip

    def resolve_actor(self) -> Actor:
        user = self.user_store.user
        if user is not None and user.uid:
            return Actor.authenticated(user)

        self.fetch_user_ip()
        return Actor.anonymous(self.user_ip_hash)

    def author_ref(self, actor: Actor) -> Any:
        """원격 문서에 저장할 작성자 값: 사용자 문서 참조 또는 익명 지문."""
        if actor.is_anonymous:
            return actor.fingerprint_hash
        return self.gateway.reference(f"users/{actor.account_id}")

    def state_author(self, actor: Actor) -> Union[User, str]:
        """캐시에 저장할 작성자 값: User 또는 익명 지문."""
        if actor.is_anonymous:
            return actor.fingerprint_hash
        return actor.profile
