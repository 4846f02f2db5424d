# entryboard/stores/authors.py
from typing import Any, Dict, Optional, Union

from entryboard.models.actor import actor_key
from entryboard.models.user import User


def resolve_author(gateway, value: Any, memo: Optional[Dict[str, Union[User, str]]] = None) -> Union[User, str, None]:
    """
    문서에 저장된 작성자 값을 캐시용 값으로 풉니다.
    익명 지문 문자열은 그대로, 사용자 문서 참조는 User로 바꿉니다.
    사용자 문서가 사라졌으면 uid만 가진 User를 돌려주어 작성자 확인은 계속 가능하게 합니다.
    """
    if value is None or isinstance(value, str):
        return value

    key = actor_key(value)
    if memo is not None and key in memo:
        return memo[key]

    document = gateway.get(value)
    author = User.from_firestore(document['id'], document) if document else User(uid=key)

    if memo is not None:
        memo[key] = author
    return author
