# entryboard/models/entry.py
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any

from entryboard.models.user import User

@dataclass(frozen=True)
class Entry:
    """
    Firestore 'entries' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    부모 프롬프트는 prompt_id 필드로 명시합니다. (엔트리 ID 문자열을 해석하지 않습니다.)
    """
    entry_id: str
    prompt_id: str
    slug: str
    title: str
    author: Optional[User]
    created: datetime
    description: str = ''
    image: Optional[str] = None # 업로드된 이미지의 다운로드 URL
    updated: Optional[datetime] = None
    version: int = 1 # 동시 수정 감지를 위한 버전. 수정할 때마다 1씩 증가합니다.
    prompt: Optional[Dict[str, Any]] = None # fetch_entry_by_slug에서 풀어둔 프롬프트 정보

    @property
    def author_id(self) -> Optional[str]:
        return self.author.uid if self.author else None

    def to_firestore(self, author_ref: Any, prompt_ref: Any) -> Dict[str, Any]:
        data = {
            'id': self.entry_id,
            'slug': self.slug,
            'title': self.title,
            'description': self.description,
            'image': self.image,
            'author': author_ref,
            'prompt': prompt_ref,
            'promptId': self.prompt_id,
            'created': self.created,
            'version': self.version,
        }
        if self.updated is not None:
            data['updated'] = self.updated
        return data

    @classmethod
    def from_firestore(cls, data: Dict[str, Any], author: Optional[User], prompt: Optional[Dict[str, Any]] = None) -> 'Entry':
        return cls(
            entry_id=data['id'],
            prompt_id=data.get('promptId'),
            slug=data.get('slug', ''),
            title=data.get('title', ''),
            author=author,
            created=data.get('created'),
            description=data.get('description', ''),
            image=data.get('image'),
            updated=data.get('updated'),
            version=data.get('version', 1),
            prompt=prompt,
        )
