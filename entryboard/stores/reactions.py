# entryboard/stores/reactions.py
"""
엔트리에 딸린 좋아요/공유 문서를 관리하는 스토어.

'likes', 'shares' 컬렉션의 문서는 entryId 필드로 엔트리에 연결됩니다.
엔트리 삭제 saga는 delete_all_for_entry가 돌려준 문서를 보상 단계에서 restore로 되살립니다.
"""

import logging
from typing import Any, Dict, List

from entryboard.stores.base import BaseStore
from entryboard.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)


class EntryReactionStore(BaseStore):
    collection: str = ''

    def __init__(self, gateway, identity):
        super().__init__()
        self.gateway = gateway
        self.identity = identity

    def _path(self, doc_id: str) -> str:
        return f"{self.collection}/{doc_id}"

    def _doc_id(self, entry_id: str, actor_key: str) -> str:
        raise NotImplementedError

    def add_for_entry(self, entry_id: str) -> Dict[str, Any]:
        with self._loading():
            actor = self.identity.resolve_actor()
            doc_id = self._doc_id(entry_id, actor.key)
            data = {
                'entryId': entry_id,
                'author': self.identity.author_ref(actor),
                'isAnonymous': actor.is_anonymous,
                'created': DateTimeUtils.now(),
            }
            self.gateway.set(self._path(doc_id), data)
        return {'id': doc_id, **data}

    def fetch_for_entry(self, entry_id: str) -> List[Dict[str, Any]]:
        with self._loading():
            return self.gateway.query(self.collection, 'entryId', '==', entry_id)

    def delete_all_for_entry(self, entry_id: str) -> List[Dict[str, Any]]:
        """
        엔트리에 연결된 문서를 모두 삭제하고 삭제한 문서를 반환합니다.
        도중에 실패하면 이미 지운 문서를 되살린 뒤 예외를 전달합니다.
        """
        with self._loading():
            documents = self.gateway.query(self.collection, 'entryId', '==', entry_id)
            deleted: List[Dict[str, Any]] = []
            try:
                for document in documents:
                    self.gateway.delete(self._path(document['id']))
                    deleted.append(document)
            except Exception as e:
                logger.error(f"{self.collection} 일괄 삭제 실패 (entry_id: {entry_id}, 삭제된 문서: {len(deleted)}): {e}")
                try:
                    self._restore(deleted)
                except Exception as restore_error:
                    logger.error(f"{self.collection} 복구 실패 (entry_id: {entry_id}): {restore_error}", exc_info=True)
                raise e
            logger.info(f"{self.collection} {len(deleted)}건 삭제 (entry_id: {entry_id})")
            return deleted

    def _restore(self, documents: List[Dict[str, Any]]) -> None:
        for document in documents:
            data = {k: v for k, v in document.items() if k != 'id'}
            self.gateway.set(self._path(document['id']), data)

    def restore(self, documents: List[Dict[str, Any]]) -> None:
        with self._loading():
            self._restore(documents)


class LikeStore(EntryReactionStore):
    """엔트리 좋아요. 같은 주체의 좋아요는 문서 ID가 같아 한 번만 존재합니다."""
    collection = 'likes'

    def _doc_id(self, entry_id: str, actor_key: str) -> str:
        return f"{entry_id}-{actor_key}"

    def like_entry(self, entry_id: str) -> Dict[str, Any]:
        return self.add_for_entry(entry_id)

    def fetch_entry_likes(self, entry_id: str) -> List[Dict[str, Any]]:
        return self.fetch_for_entry(entry_id)

    def delete_all_entry_likes(self, entry_id: str) -> List[Dict[str, Any]]:
        return self.delete_all_for_entry(entry_id)


class ShareStore(EntryReactionStore):
    """엔트리 공유 기록. 공유할 때마다 새 문서가 생깁니다."""
    collection = 'shares'

    def _doc_id(self, entry_id: str, actor_key: str) -> str:
        return f"{entry_id}-{actor_key}-{DateTimeUtils.to_timestamp_ms(DateTimeUtils.now())}"

    def share_entry(self, entry_id: str) -> Dict[str, Any]:
        return self.add_for_entry(entry_id)

    def fetch_entry_shares(self, entry_id: str) -> List[Dict[str, Any]]:
        return self.fetch_for_entry(entry_id)

    def delete_all_entry_shares(self, entry_id: str) -> List[Dict[str, Any]]:
        return self.delete_all_for_entry(entry_id)
