# entryboard/models/user.py
from dataclasses import dataclass
from typing import Optional, Dict, Any

ADMIN_ROLE = 'Admin'

@dataclass(frozen=True)
class User:
    """
    Firestore 'users' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    문서 ID가 곧 Firebase Auth의 uid입니다.
    """
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    role: Optional[str] = None # 권한 속성. update_role을 통해서만 변경됩니다.

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def to_firestore(self) -> Dict[str, Any]:
        """문서 본문으로 저장될 필드. uid는 문서 ID이므로 포함하지 않습니다."""
        data = {'email': self.email, 'displayName': self.display_name, 'photoURL': self.photo_url}
        if self.role is not None:
            data['role'] = self.role
        return data

    @classmethod
    def from_firestore(cls, uid: str, data: Dict[str, Any]) -> 'User':
        return cls(
            uid=uid,
            email=data.get('email'),
            display_name=data.get('displayName'),
            photo_url=data.get('photoURL'),
            role=data.get('role'),
        )

    def to_session(self) -> Dict[str, Any]:
        """세션 파일(JSON)에 저장할 형태."""
        return {'uid': self.uid, **self.to_firestore()}

    @classmethod
    def from_session(cls, data: Dict[str, Any]) -> 'User':
        return cls.from_firestore(data['uid'], data)
