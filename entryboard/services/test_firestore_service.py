# entryboard/services/test_firestore_service.py
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from entryboard.core.errors import RemoteReadFailed, RemoteWriteFailed
from entryboard.services.firestore_service import FirestoreGateway


def _snapshot(doc_id, data):
    snapshot = MagicMock()
    snapshot.exists = data is not None
    snapshot.id = doc_id
    snapshot.to_dict.return_value = data
    return snapshot


def test_get_returns_document_with_id():
    client = MagicMock()
    client.document.return_value.get.return_value = _snapshot('u1', {'displayName': 'U1', 'created': datetime(2024, 1, 1)})

    document = FirestoreGateway(client).get('users/u1')

    client.document.assert_called_with('users/u1')
    assert document['id'] == 'u1'
    assert document['displayName'] == 'U1'
    assert document['created'].tzinfo == timezone.utc


def test_get_missing_document_returns_none():
    client = MagicMock()
    client.document.return_value.get.return_value = _snapshot('u1', None)

    assert FirestoreGateway(client).get('users/u1') is None


def test_get_accepts_reference():
    client = MagicMock()
    ref = MagicMock()
    ref.get.return_value = _snapshot('u1', {})

    assert FirestoreGateway(client).get(ref) == {'id': 'u1'}
    client.document.assert_not_called()


def test_query_with_predicate():
    client = MagicMock()
    query = client.collection.return_value.where.return_value
    query.stream.return_value = [_snapshot('e1', {'slug': 'first'})]

    documents = FirestoreGateway(client).query('entries', 'slug', '==', 'first')

    client.collection.return_value.where.assert_called_with('slug', '==', 'first')
    assert documents == [{'id': 'e1', 'slug': 'first'}]


def test_backend_errors_are_wrapped():
    client = MagicMock()
    client.document.return_value.get.side_effect = RuntimeError('unavailable')
    client.document.return_value.set.side_effect = RuntimeError('unavailable')
    client.document.return_value.delete.side_effect = RuntimeError('unavailable')
    gateway = FirestoreGateway(client)

    with pytest.raises(RemoteReadFailed):
        gateway.get('users/u1')
    with pytest.raises(RemoteWriteFailed):
        gateway.set('users/u1', {'displayName': 'U1'})
    with pytest.raises(RemoteWriteFailed) as exc_info:
        gateway.delete('users/u1')
    assert isinstance(exc_info.value.__cause__, RuntimeError)
