# entryboard/models/prompt.py
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

from entryboard.models.entry import Entry

@dataclass(frozen=True)
class Prompt:
    """
    Firestore 'prompts' 컬렉션의 문서 구조를 정의하는 데이터클래스.

    entries는 캐시용 엔트리 요약(비정규화), entry_refs는 백엔드 연결용 문서 참조 목록입니다.
    아래 with_/without_ 메서드는 항상 새 Prompt를 반환합니다.
    """
    prompt_id: str
    title: str
    description: str = ''
    entries: Tuple[Entry, ...] = ()
    entry_refs: Tuple[Any, ...] = ()

    def find_entry(self, entry_id: str) -> Optional[Entry]:
        return next((e for e in self.entries if e.entry_id == entry_id), None)

    def with_entry(self, entry: Entry, entry_ref: Any = None) -> 'Prompt':
        """같은 entry_id의 요약이 있으면 교체하고, 이미 있는 참조는 다시 넣지 않습니다."""
        if self.find_entry(entry.entry_id) is not None:
            entries = self.replacing_entry(entry).entries
        else:
            entries = self.entries + (entry,)

        refs = self.entry_refs
        if entry_ref is not None and getattr(entry_ref, 'id', entry_ref) not in {getattr(r, 'id', r) for r in refs}:
            refs = refs + (entry_ref,)
        return replace(self, entries=entries, entry_refs=refs)

    def replacing_entry(self, entry: Entry) -> 'Prompt':
        entries = tuple(entry if e.entry_id == entry.entry_id else e for e in self.entries)
        return replace(self, entries=entries)

    def without_entry(self, entry_id: str) -> 'Prompt':
        return replace(
            self,
            entries=tuple(e for e in self.entries if e.entry_id != entry_id),
            entry_refs=tuple(r for r in self.entry_refs if getattr(r, 'id', r) != entry_id),
        )

    @classmethod
    def from_firestore(cls, data: Dict[str, Any], entries: Tuple[Entry, ...] = ()) -> 'Prompt':
        return cls(
            prompt_id=data['id'],
            title=data.get('title', ''),
            description=data.get('description', ''),
            entries=entries,
            entry_refs=tuple(data.get('entries', []) or []),
        )
