# entryboard/stores/comments/test_store.py
"""
댓글 스토어 테스트

사용법: python -m pytest entryboard/stores/comments/test_store.py -v
"""

import re
from datetime import datetime, timezone

import pytest
from marshmallow import ValidationError

from entryboard.conftest import CALLER_ADDRESS, FINGERPRINT_KEY, FakeRef
from entryboard.core.errors import NotFound, PermissionDenied, RemoteWriteFailed
from entryboard.core.security import fingerprint

ENTRY_ID = 'P1T0'
COMMENTS = f"entries/{ENTRY_ID}/comments"
ANON_HASH = fingerprint(CALLER_ADDRESS, FINGERPRINT_KEY)


@pytest.fixture
def entry(gateway):
    gateway.docs[f"entries/{ENTRY_ID}"] = {'slug': 'first-entry', 'title': 'First', 'promptId': 'P1'}
    return ENTRY_ID


def _seed_comment(gateway, comment_id, author, text='hi', parent_id=None):
    data = {
        'id': comment_id,
        'text': text,
        'author': author,
        'isAnonymous': isinstance(author, str),
        'created': datetime(2024, 1, 1, tzinfo=timezone.utc),
        'likes': [],
    }
    if parent_id:
        data['parentId'] = parent_id
    gateway.docs[f"{COMMENTS}/{comment_id}"] = data


def test_anonymous_comment_uses_keyed_fingerprint(comment_store, gateway, entry):
    created = comment_store.add_comment({'text': 'hello'}, entry)

    assert created.author == ANON_HASH
    assert created.is_anonymous is True
    assert re.fullmatch(rf"\d+-{ANON_HASH}", created.comment_id)

    stored = gateway.docs[f"{COMMENTS}/{created.comment_id}"]
    assert stored['author'] == ANON_HASH
    assert stored['isAnonymous'] is True
    assert stored['text'] == 'hello'


def test_authenticated_comment_appears_once(comment_store, gateway, entry, sign_in):
    user = sign_in('u1')

    created = comment_store.add_comment({'text': 'hello'}, entry)

    assert [c.comment_id for c in comment_store.comments] == [created.comment_id]
    assert created.author == user
    assert created.is_anonymous is False
    assert created.comment_id.endswith('-u1')
    assert gateway.docs[f"{COMMENTS}/{created.comment_id}"]['author'] == FakeRef('users/u1')


def test_add_comment_failure_leaves_cache_unchanged(comment_store, gateway, entry, loading_events):
    events = loading_events(comment_store)

    def _set(path, data):
        raise RemoteWriteFailed(path)
    gateway.set = _set

    with pytest.raises(RemoteWriteFailed):
        comment_store.add_comment({'text': 'hello'}, entry)

    assert comment_store.comments == ()
    assert events == [True, False]


def test_invalid_comment_is_rejected_before_loading(comment_store, entry, loading_events):
    events = loading_events(comment_store)

    with pytest.raises(ValidationError):
        comment_store.add_comment({'text': ''}, entry)

    assert events == []


def test_fetch_comments_resolves_authors(comment_store, gateway, entry):
    gateway.docs['users/u1'] = {'email': 'u1@example.com', 'displayName': 'U1'}
    _seed_comment(gateway, 'c1', FakeRef('users/u1'))
    _seed_comment(gateway, 'c2', ANON_HASH)

    comments = comment_store.fetch_comments('first-entry')

    assert [c.author_id for c in comments] == ['u1', ANON_HASH]
    assert comments[0].author.display_name == 'U1'


def test_fetch_comments_unknown_slug(comment_store, entry):
    with pytest.raises(NotFound):
        comment_store.fetch_comments('missing')


def test_edit_by_author(comment_store, gateway, entry, sign_in):
    sign_in('u1')
    created = comment_store.add_comment({'text': 'hello'}, entry)

    edited = comment_store.edit_comment(entry, created.comment_id, 'edited', 'u1')

    assert edited.text == 'edited'
    assert edited.updated is not None
    assert comment_store.comments[0].text == 'edited'
    assert gateway.docs[f"{COMMENTS}/{created.comment_id}"]['text'] == 'edited'


def test_edit_by_other_actor_is_denied(comment_store, gateway, entry, sign_in, loading_events):
    sign_in('u1')
    created = comment_store.add_comment({'text': 'hello'}, entry)
    before = comment_store.comments
    events = loading_events(comment_store)
    calls = len(gateway.calls)

    with pytest.raises(PermissionDenied):
        comment_store.edit_comment(entry, created.comment_id, 'edited', 'u2')

    assert comment_store.comments == before
    assert gateway.calls[calls:] == []
    assert events == [True, False]
    assert PermissionDenied.retryable is False


def test_anonymous_author_matches_by_fingerprint(comment_store, entry):
    created = comment_store.add_comment({'text': 'hello'}, entry)

    comment_store.edit_comment(entry, created.comment_id, 'mine', ANON_HASH)

    assert comment_store.comments[0].text == 'mine'


def test_like_is_idempotent_remotely_and_locally(comment_store, gateway, entry, sign_in):
    sign_in('u1')
    created = comment_store.add_comment({'text': 'hello'}, entry)

    comment_store.like_comment(entry, created.comment_id)
    comment_store.like_comment(entry, created.comment_id)

    assert gateway.docs[f"{COMMENTS}/{created.comment_id}"]['likes'] == [FakeRef('users/u1')]
    assert comment_store.comments[0].likes == frozenset({'u1'})


def test_like_from_different_actors(comment_store, entry, sign_in):
    created = comment_store.add_comment({'text': 'hello'}, entry)
    comment_store.like_comment(entry, created.comment_id)
    sign_in('u1')
    comment_store.like_comment(entry, created.comment_id)

    assert comment_store.comments[0].likes == frozenset({ANON_HASH, 'u1'})


def test_delete_comment(comment_store, gateway, entry, sign_in):
    sign_in('u1')
    created = comment_store.add_comment({'text': 'hello'}, entry)

    comment_store.delete_comment(entry, created.comment_id, 'u1')

    assert comment_store.comments == ()
    assert f"{COMMENTS}/{created.comment_id}" not in gateway.docs


def test_delete_unknown_comment(comment_store, entry):
    with pytest.raises(NotFound):
        comment_store.delete_comment(entry, 'missing', 'u1')


def test_replies_are_kept_separately(comment_store, gateway, entry, sign_in):
    sign_in('u1')
    parent = comment_store.add_comment({'text': 'parent'}, entry)

    reply = comment_store.add_reply(entry, parent.comment_id, {'text': 'reply'})

    assert reply.parent_id == parent.comment_id
    assert [c.comment_id for c in comment_store.child_comments] == [reply.comment_id]
    assert [c.comment_id for c in comment_store.comments] == [parent.comment_id]
    assert gateway.docs[f"{COMMENTS}/{reply.comment_id}"]['parentId'] == parent.comment_id


def test_fetch_replies_by_parent(comment_store, gateway, entry):
    _seed_comment(gateway, 'c1', ANON_HASH)
    _seed_comment(gateway, 'r1', ANON_HASH, parent_id='c1')
    _seed_comment(gateway, 'r2', ANON_HASH, parent_id='other')

    replies = comment_store.fetch_comments_by_parent_id('first-entry', 'c1')

    assert [c.comment_id for c in replies] == ['r1']


def test_edit_reply_updates_child_cache(comment_store, entry, sign_in):
    user = sign_in('u1')
    parent = comment_store.add_comment({'text': 'parent'}, entry)
    reply = comment_store.add_reply(entry, parent.comment_id, {'text': 'reply'})

    comment_store.edit_comment(entry, reply.comment_id, 'edited', user.uid)

    assert comment_store.child_comments[0].text == 'edited'
    assert comment_store.comments[0].text == 'parent'
