# entryboard/stores/prompts.py
import logging
from typing import Any, Dict, Optional, Tuple

from entryboard.models.entry import Entry
from entryboard.models.prompt import Prompt
from entryboard.stores.authors import resolve_author
from entryboard.stores.base import BaseStore

logger = logging.getLogger(__name__)

class PromptStore(BaseStore):
    """
    프롬프트와 그 안의 엔트리 요약을 캐시합니다.
    엔트리 요약 패치 메서드는 EntryStore가 원격 작업을 마친 뒤에만 호출합니다.
    """
    def __init__(self, gateway):
        super().__init__()
        self.gateway = gateway
        self._prompts = self._cache('prompts', key=lambda p: p.prompt_id)

    @property
    def prompts(self) -> Tuple[Prompt, ...]:
        return self._prompts.items

    def get_prompt_ref(self, prompt_id: str):
        return self.gateway.reference(f"prompts/{prompt_id}")

    def find_prompt(self, prompt_id: str) -> Optional[Prompt]:
        return self._prompts.find(prompt_id)

    def find_entry_summary(self, entry_id: str) -> Optional[Entry]:
        for prompt in self._prompts.items:
            entry = prompt.find_entry(entry_id)
            if entry is not None:
                return entry
        return None

    def fetch_prompts(self) -> Tuple[Prompt, ...]:
        """모든 프롬프트를 불러오고 엔트리 참조를 요약으로 풉니다."""
        with self._loading():
            authors: Dict[str, Any] = {}
            prompts = []
            for doc in self.gateway.query('prompts'):
                entries = []
                for ref in doc.get('entries', []) or []:
                    entry_doc = self.gateway.get(ref)
                    if entry_doc is None:
                        logger.warning(f"프롬프트 {doc['id']}에 존재하지 않는 엔트리 참조가 있습니다: {getattr(ref, 'id', ref)}")
                        continue
                    # promptId 필드가 없는 이전 문서는 참조를 가진 프롬프트를 부모로 봅니다.
                    entry_doc = {**entry_doc, 'promptId': entry_doc.get('promptId') or doc['id']}
                    entries.append(Entry.from_firestore(entry_doc, resolve_author(self.gateway, entry_doc.get('author'), authors)))
                prompts.append(Prompt.from_firestore(doc, tuple(entries)))
            self._prompts.reset(prompts)
        return self.prompts

    # --- EntryStore 전용 패치 ---
    def append_entry_summary(self, entry: Entry, entry_ref: Any = None) -> None:
        if self._prompts.update(entry.prompt_id, lambda p: p.with_entry(entry, entry_ref)) is None:
            logger.info(f"캐시에 없는 프롬프트라 엔트리 요약을 추가하지 않습니다 (prompt_id: {entry.prompt_id})")

    def replace_entry_summary(self, entry: Entry) -> None:
        self._prompts.update(entry.prompt_id, lambda p: p.replacing_entry(entry))

    def remove_entry_summary(self, prompt_id: str, entry_id: str) -> None:
        self._prompts.update(prompt_id, lambda p: p.without_entry(entry_id))
