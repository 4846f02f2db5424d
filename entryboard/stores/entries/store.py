# entryboard/stores/entries/store.py

import logging
from dataclasses import replace
from typing import Any, Dict, Optional, Tuple

from entryboard.core.errors import NotFound, PermissionDenied, VersionConflict
from entryboard.models.actor import actor_key
from entryboard.models.entry import Entry
from entryboard.stores.authors import resolve_author
from entryboard.stores.base import BaseStore
from entryboard.stores.entries.schemas import EntryCreateSchema, EntryEditSchema
from entryboard.stores.saga import Saga
from entryboard.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('slug', 'title', 'description', 'image')

class EntryStore(BaseStore):
    """
    엔트리 작성/수정/삭제를 담당하는 스토어.

    엔트리 자체는 캐시하지 않고 로딩 플래그만 가집니다. 엔트리 요약은 PromptStore의 프롬프트 안에 있으며,
    여러 원격 호출로 이루어진 작성/삭제는 saga로 실행한 뒤 전체가 성공했을 때만 요약을 패치합니다.
    실패는 ErrorService에 보고한 뒤 호출자에게 다시 전달합니다.
    """
    def __init__(self, gateway, storage, identity, prompt_store, like_store, share_store, error_service,
                 operation_log=None, image_path: str = 'images/entry-{entry_id}'):
        super().__init__()
        self.gateway = gateway
        self.storage = storage
        self.identity = identity
        self.prompt_store = prompt_store
        self.like_store = like_store
        self.share_store = share_store
        self.error_service = error_service
        self.operation_log = operation_log
        self.image_path = image_path

    def _image_path(self, entry_id: str) -> str:
        return self.image_path.format(entry_id=entry_id)

    def _report(self, error: Exception, message: str) -> None:
        logger.error(f"{message}: {error}")
        self.error_service.report(error)

    def _current_entry(self, entry_id: str) -> Entry:
        """캐시된 요약을 우선 사용하고, 없으면 원격 문서를 읽습니다."""
        summary = self.prompt_store.find_entry_summary(entry_id)
        if summary is not None:
            return summary

        document = self.gateway.get(f"entries/{entry_id}")
        if document is None:
            raise NotFound(f"엔트리를 찾을 수 없습니다: {entry_id}")
        document = {**document, 'promptId': document.get('promptId') or getattr(document.get('prompt'), 'id', None)}
        return Entry.from_firestore(document, resolve_author(self.gateway, document.get('author')))

    @staticmethod
    def _authorize(entry: Entry, user_id: Optional[str], action: str) -> None:
        if not user_id or entry.author_id != user_id:
            logger.warning(f"엔트리 {action} 권한 없음 (entry_id: {entry.entry_id}, user_id: {user_id})")
            raise PermissionDenied(f"엔트리를 {action}할 권한이 없습니다.")

    # --- 조회 ---
    def fetch_entry_by_slug(self, slug: str) -> Entry:
        """slug로 엔트리를 찾아 작성자와 프롬프트 정보를 풀어서 반환합니다."""
        with self._loading():
            docs = self.gateway.query('entries', 'slug', '==', slug)
            if not docs:
                raise NotFound(f"slug에 해당하는 엔트리를 찾을 수 없습니다: {slug}")
            document = docs[0]

            author = resolve_author(self.gateway, document.get('author'))
            prompt_source = f"prompts/{document['promptId']}" if document.get('promptId') else document.get('prompt')
            prompt = self.gateway.get(prompt_source) if prompt_source is not None else None

            prompt_id = document.get('promptId') or (prompt['id'] if prompt else None)
            return Entry.from_firestore({**document, 'promptId': prompt_id}, author, prompt)

    # --- 변경 ---
    def add_entry(self, entry: Dict[str, Any]) -> Entry:
        """
        엔트리를 작성합니다. (로그인 사용자만 가능)
        1) 엔트리 문서 저장  2) 부모 프롬프트의 entries 배열에 참조 추가
        같은 ID의 문서가 다른 사용자 것이면 쓰기 전에 PermissionDenied를 냅니다.
        2단계가 실패하면 1단계에서 만든 문서를 삭제하거나, 덮어쓴 문서를 되돌립니다.
        """
        data = EntryCreateSchema().load(entry)
        prompt_id = data['promptId']

        with self._loading():
            try:
                actor = self.identity.resolve_actor()
                if actor.is_anonymous:
                    raise PermissionDenied("로그인한 사용자만 엔트리를 작성할 수 있습니다.")

                prompt_path = f"prompts/{prompt_id}"
                if self.gateway.get(prompt_path) is None:
                    raise NotFound(f"프롬프트를 찾을 수 없습니다: {prompt_id}")

                created = DateTimeUtils.now()
                new_entry = Entry(
                    entry_id=data.get('id') or f"{prompt_id}T{DateTimeUtils.to_timestamp_ms(created)}",
                    prompt_id=prompt_id,
                    slug=data['slug'],
                    title=data['title'],
                    author=actor.profile,
                    created=created,
                    description=data['description'],
                    image=data['image'],
                )
                entry_path = f"entries/{new_entry.entry_id}"
                entry_ref = self.gateway.reference(entry_path)
                document = new_entry.to_firestore(self.identity.author_ref(actor), self.prompt_store.get_prompt_ref(prompt_id))

                def _write_in_transaction(txn):
                    previous = txn.get(entry_path)
                    if previous is not None and actor_key(previous.get('author')) != actor.account_id:
                        raise PermissionDenied("엔트리를 작성할 권한이 없습니다.")
                    txn.set(entry_path, document)
                    return previous

                def _undo_write(previous):
                    # 이 호출이 만든 문서만 지우고, 덮어쓴 본인 문서는 이전 내용으로 되돌립니다.
                    if previous is None:
                        self.gateway.delete(entry_path)
                    else:
                        self.gateway.set(entry_path, previous)

                saga = Saga('add_entry', self.operation_log, {'entryId': new_entry.entry_id, 'promptId': prompt_id})
                saga.step('entry_document',
                          lambda: self.gateway.run_transaction(_write_in_transaction),
                          _undo_write)
                saga.step('prompt_reference',
                          lambda: self.gateway.add_to_array(prompt_path, 'entries', entry_ref))
                saga.run()
            except Exception as e:
                self._report(e, f"엔트리 작성 실패 (prompt_id: {prompt_id})")
                raise

            self.prompt_store.append_entry_summary(new_entry, entry_ref)
            logger.info(f"엔트리 작성 완료 (entry_id: {new_entry.entry_id})")
        return new_entry

    def edit_entry(self, entry: Dict[str, Any], user_id: str) -> Entry:
        """
        엔트리를 수정합니다. (작성자 본인만 가능)
        트랜잭션 안에서 원격 버전을 확인하고, 일치할 때만 필드를 덮어쓰며 버전을 1 올립니다.
        """
        data = EntryEditSchema().load(entry)
        entry_id = data['id']
        path = f"entries/{entry_id}"

        with self._mutating(entry_id):
            try:
                current = self._current_entry(entry_id)
                self._authorize(current, user_id, '수정')

                expected = data.get('version', current.version)
                changes = {name: data.get(name, getattr(current, name)) for name in EDITABLE_FIELDS}
                updated = DateTimeUtils.now()

                def _edit_in_transaction(txn):
                    document = txn.get(path)
                    if document is None:
                        raise NotFound(f"엔트리를 찾을 수 없습니다: {entry_id}")
                    if actor_key(document.get('author')) != user_id:
                        raise PermissionDenied("엔트리를 수정할 권한이 없습니다.")
                    actual = document.get('version', 1)
                    if actual != expected:
                        raise VersionConflict(entry_id, expected, actual)
                    txn.update(path, {**changes, 'updated': updated, 'version': actual + 1})
                    return actual + 1

                version = self.gateway.run_transaction(_edit_in_transaction)
            except Exception as e:
                self._report(e, f"엔트리 수정 실패 (entry_id: {entry_id})")
                raise

            edited = replace(current, **changes, updated=updated, version=version)
            self.prompt_store.replace_entry_summary(edited)
        return edited

    def delete_entry(self, entry_id: str, user_id: str) -> None:
        """
        엔트리를 삭제합니다. (작성자 본인만 가능)
        이미지 -> 좋아요 -> 공유 -> 프롬프트 참조 -> 엔트리 문서 순서로 지우며,
        중간 단계가 실패하면 앞서 지운 것을 역순으로 되살리고 캐시는 그대로 둡니다.
        """
        with self._mutating(entry_id):
            try:
                current = self._current_entry(entry_id)
                self._authorize(current, user_id, '삭제')

                prompt_path = f"prompts/{current.prompt_id}"
                entry_path = f"entries/{entry_id}"
                image_path = self._image_path(entry_id)
                entry_ref = self.gateway.reference(entry_path)

                saga = Saga('delete_entry', self.operation_log, {'entryId': entry_id, 'promptId': current.prompt_id})
                saga.step('image',
                          lambda: self._delete_image(image_path),
                          lambda blob: self._restore_image(image_path, blob))
                saga.step('likes',
                          lambda: self.like_store.delete_all_entry_likes(entry_id),
                          self.like_store.restore)
                saga.step('shares',
                          lambda: self.share_store.delete_all_entry_shares(entry_id),
                          self.share_store.restore)
                saga.step('prompt_reference',
                          lambda: self.gateway.remove_from_array(prompt_path, 'entries', entry_ref),
                          lambda _: self.gateway.add_to_array(prompt_path, 'entries', entry_ref))
                saga.step('entry_document',
                          lambda: self.gateway.delete(entry_path))
                saga.run()
            except Exception as e:
                self._report(e, f"엔트리 삭제 실패 (entry_id: {entry_id})")
                raise

            self.prompt_store.remove_entry_summary(current.prompt_id, entry_id)
            logger.info(f"엔트리 삭제 완료 (entry_id: {entry_id})")

    def _delete_image(self, path: str) -> Optional[Tuple[bytes, Optional[str]]]:
        """이미지를 지우고, 보상에 쓸 수 있도록 지운 내용을 반환합니다. 이미지가 없으면 None."""
        blob = self.storage.download(path)
        if blob is not None:
            self.storage.delete(path)
        return blob

    def _restore_image(self, path: str, blob: Optional[Tuple[bytes, Optional[str]]]) -> None:
        if blob is not None:
            data, content_type = blob
            self.storage.upload(path, data, content_type)

    def upload_image(self, data: bytes, entry_id: str, content_type: str = 'image/jpeg') -> str:
        """엔트리 이미지를 업로드하고 다운로드 URL을 반환합니다."""
        path = self._image_path(entry_id)
        with self._loading():
            try:
                self.storage.upload(path, data, content_type)
                return self.storage.get_download_url(path)
            except Exception as e:
                self._report(e, f"엔트리 이미지 업로드 실패 (entry_id: {entry_id})")
                raise
