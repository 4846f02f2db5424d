# entryboard/stores/comments/store.py

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from entryboard.core.errors import NotFound, PermissionDenied
from entryboard.models.comment import Comment
from entryboard.stores.authors import resolve_author
from entryboard.stores.base import BaseStore, CollectionCache
from entryboard.stores.comments.schemas import CommentCreateSchema, CommentEditSchema
from entryboard.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

class CommentStore(BaseStore):
    """
    엔트리 댓글을 관리하는 스토어.
    - 원격 쓰기가 성공한 뒤에만 comments / child_comments 캐시를 패치합니다.
    - 수정/삭제는 작성자 본인만 가능합니다. (클라이언트 검사는 참고용, 실제 강제는 백엔드 보안 규칙)
    """
    def __init__(self, gateway, identity):
        super().__init__()
        self.gateway = gateway
        self.identity = identity
        self._comments = self._cache('comments', key=lambda c: c.comment_id)
        self._child_comments = self._cache('child_comments', key=lambda c: c.comment_id)

    @property
    def comments(self) -> Tuple[Comment, ...]:
        return self._comments.items

    @property
    def child_comments(self) -> Tuple[Comment, ...]:
        return self._child_comments.items

    @staticmethod
    def _collection(entry_id: str) -> str:
        return f"entries/{entry_id}/comments"

    def _entry_id_by_slug(self, slug: str) -> str:
        docs = self.gateway.query('entries', 'slug', '==', slug)
        if not docs:
            raise NotFound(f"slug에 해당하는 엔트리를 찾을 수 없습니다: {slug}")
        return docs[0]['id']

    def _load(self, entry_id: str, parent_id: Optional[str] = None) -> List[Comment]:
        if parent_id is None:
            docs = self.gateway.query(self._collection(entry_id))
        else:
            docs = self.gateway.query(self._collection(entry_id), 'parentId', '==', parent_id)

        authors: Dict[str, Any] = {}
        return [Comment.from_firestore(doc, resolve_author(self.gateway, doc.get('author'), authors)) for doc in docs]

    def _caches_with(self, comment_id: str) -> List[CollectionCache]:
        return [cache for cache in (self._comments, self._child_comments) if cache.find(comment_id)]

    def _find(self, comment_id: str) -> Comment:
        comment = self._comments.find(comment_id) or self._child_comments.find(comment_id)
        if comment is None:
            raise NotFound(f"댓글을 찾을 수 없습니다: {comment_id}")
        return comment

    @staticmethod
    def _authorize(comment: Comment, user_id: Optional[str], action: str) -> None:
        if not user_id or comment.author_id != user_id:
            logger.warning(f"댓글 {action} 권한 없음 (comment_id: {comment.comment_id}, user_id: {user_id})")
            raise PermissionDenied(f"댓글을 {action}할 권한이 없습니다.")

    def _create(self, entry_id: str, text: str, parent_id: Optional[str]) -> Comment:
        actor = self.identity.resolve_actor()
        created = DateTimeUtils.now()

        comment = Comment(
            comment_id=f"{DateTimeUtils.to_timestamp_ms(created)}-{actor.key}",
            text=text,
            author=self.identity.state_author(actor),
            is_anonymous=actor.is_anonymous,
            created=created,
            parent_id=parent_id,
        )
        self.gateway.set(
            f"{self._collection(entry_id)}/{comment.comment_id}",
            comment.to_firestore(self.identity.author_ref(actor))
        )
        return comment

    # --- 조회 ---
    def fetch_comments(self, slug: str) -> Tuple[Comment, ...]:
        """slug에 해당하는 엔트리의 모든 댓글을 불러옵니다."""
        with self._loading():
            entry_id = self._entry_id_by_slug(slug)
            self._comments.reset(self._load(entry_id))
        return self.comments

    def fetch_comments_by_parent_id(self, slug: str, parent_id: str) -> Tuple[Comment, ...]:
        """특정 댓글의 답글만 불러와 child_comments에 둡니다."""
        with self._loading():
            entry_id = self._entry_id_by_slug(slug)
            self._child_comments.reset(self._load(entry_id, parent_id))
        return self.child_comments

    # --- 변경 ---
    def add_comment(self, comment: Dict[str, Any], entry_id: str) -> Comment:
        """새 댓글을 작성합니다. 작성자는 현재 주체(로그인 사용자 또는 익명 지문)입니다."""
        data = CommentCreateSchema().load(comment)
        with self._loading():
            try:
                created = self._create(entry_id, data['text'], data.get('parentId'))
            except Exception as e:
                logger.error(f"댓글 작성 실패 (entry_id: {entry_id}): {e}")
                raise
            self._comments.upsert(created)
        return created

    def add_reply(self, entry_id: str, comment_id: str, reply: Dict[str, Any]) -> Comment:
        """댓글에 답글을 작성합니다. 답글은 child_comments에 추가됩니다."""
        data = CommentCreateSchema().load(reply)
        with self._loading():
            try:
                created = self._create(entry_id, data['text'], comment_id)
            except Exception as e:
                logger.error(f"답글 작성 실패 (entry_id: {entry_id}, parent: {comment_id}): {e}")
                raise
            self._child_comments.upsert(created)
        return created

    def edit_comment(self, entry_id: str, comment_id: str, text: str, user_id: str) -> Comment:
        """댓글 본문을 수정합니다. (작성자 본인만 가능)"""
        data = CommentEditSchema().load({'text': text})
        with self._mutating(comment_id):
            self._authorize(self._find(comment_id), user_id, '수정')

            updated = DateTimeUtils.now()
            path = f"{self._collection(entry_id)}/{comment_id}"
            try:
                self.gateway.run_transaction(lambda txn: txn.update(path, {'text': data['text'], 'updated': updated}))
            except Exception as e:
                logger.error(f"댓글 수정 실패 (comment_id: {comment_id}): {e}")
                raise

            for cache in self._caches_with(comment_id):
                cache.update(comment_id, lambda c: replace(c, text=data['text'], updated=updated))
        return self._find(comment_id)

    def like_comment(self, entry_id: str, comment_id: str) -> None:
        """
        현재 주체를 댓글의 좋아요 집합에 추가합니다.
        원격은 배열 합집합, 로컬은 집합이라 같은 주체가 반복해도 한 번만 반영됩니다.
        """
        with self._mutating(comment_id):
            actor = self.identity.resolve_actor()
            path = f"{self._collection(entry_id)}/{comment_id}"
            try:
                self.gateway.add_to_array(path, 'likes', self.identity.author_ref(actor))
            except Exception as e:
                logger.error(f"댓글 좋아요 실패 (comment_id: {comment_id}): {e}")
                raise

            for cache in self._caches_with(comment_id):
                cache.update(comment_id, lambda c: c.with_like(actor.key))

    def delete_comment(self, entry_id: str, comment_id: str, user_id: str) -> None:
        """댓글을 삭제합니다. (작성자 본인만 가능)"""
        with self._mutating(comment_id):
            self._authorize(self._find(comment_id), user_id, '삭제')

            try:
                self.gateway.delete(f"{self._collection(entry_id)}/{comment_id}")
            except Exception as e:
                logger.error(f"댓글 삭제 실패 (comment_id: {comment_id}): {e}")
                raise

            for cache in self._caches_with(comment_id):
                cache.remove(comment_id)
