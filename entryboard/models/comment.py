# entryboard/models/comment.py
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional, Union

from entryboard.models.actor import actor_key
from entryboard.models.user import User

@dataclass(frozen=True)
class Comment:
    """
    Firestore 'entries/{entry_id}/comments' 하위 컬렉션의 문서 구조를 정의하는 데이터클래스.

    캐시에서 author는 로그인 작성자의 User 또는 익명 지문 문자열입니다.
    likes는 주체 식별 문자열의 집합이라 같은 주체가 두 번 좋아요해도 크기가 변하지 않습니다.
    """
    comment_id: str
    text: str
    author: Union[User, str]
    is_anonymous: bool
    created: datetime
    parent_id: Optional[str] = None
    updated: Optional[datetime] = None
    likes: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def author_id(self) -> Optional[str]:
        return actor_key(self.author)

    def with_like(self, key: str) -> 'Comment':
        return replace(self, likes=self.likes | {key})

    def to_firestore(self, author_value: Any) -> Dict[str, Any]:
        """
        원격 문서 본문. author_value는 로그인 작성자의 문서 참조 또는 익명 지문입니다.
        필드 이름은 기존 백엔드 데이터와 같은 camelCase를 사용합니다.
        """
        data = {
            'id': self.comment_id,
            'text': self.text,
            'author': author_value,
            'isAnonymous': self.is_anonymous,
            'created': self.created,
            'likes': [],
        }
        if self.parent_id is not None:
            data['parentId'] = self.parent_id
        return data

    @classmethod
    def from_firestore(cls, data: Dict[str, Any], author: Union[User, str]) -> 'Comment':
        return cls(
            comment_id=data['id'],
            text=data.get('text', ''),
            author=author,
            is_anonymous=bool(data.get('isAnonymous', False)),
            created=data.get('created'),
            parent_id=data.get('parentId'),
            updated=data.get('updated'),
            likes=frozenset(actor_key(v) for v in data.get('likes', []) or []),
        )
