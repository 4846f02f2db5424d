# entryboard/models/actor.py
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from entryboard.models.user import User

class ActorKind(Enum):
    """쓰기 작업의 주체 유형"""
    AUTHENTICATED = "AUTHENTICATED"
    ANONYMOUS = "ANONYMOUS"

@dataclass(frozen=True)
class Actor:
    """
    쓰기 작업에 귀속되는 신원.
    로그인 사용자는 account_id/profile을, 익명 사용자는 fingerprint_hash만 가집니다.
    """
    kind: ActorKind
    account_id: Optional[str] = None
    profile: Optional[User] = None
    fingerprint_hash: Optional[str] = None

    @classmethod
    def authenticated(cls, profile: User) -> 'Actor':
        return cls(kind=ActorKind.AUTHENTICATED, account_id=profile.uid, profile=profile)

    @classmethod
    def anonymous(cls, fingerprint_hash: str) -> 'Actor':
        return cls(kind=ActorKind.ANONYMOUS, fingerprint_hash=fingerprint_hash)

    @property
    def is_anonymous(self) -> bool:
        return self.kind is ActorKind.ANONYMOUS

    @property
    def key(self) -> str:
        """좋아요 집합, 댓글 ID 등에 쓰이는 주체 식별 문자열."""
        return self.fingerprint_hash if self.is_anonymous else self.account_id


def actor_key(value: Any) -> Optional[str]:
    """
    저장된 작성자/좋아요 값으로부터 주체 식별 문자열을 얻습니다.

    - User (캐시에 풀어둔 작성자) -> uid
    - 문서 참조 (`users/<uid>`) -> 문서 ID
    - 익명 지문 문자열 -> 그대로
    """
    if value is None:
        return None
    if isinstance(value, User):
        return value.uid
    if isinstance(value, dict):
        return value.get('uid')
    if isinstance(value, str):
        return value
    if hasattr(value, 'path') and hasattr(value, 'id'):
        return value.id
    return str(value)
