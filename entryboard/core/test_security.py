# entryboard/core/test_security.py
import hashlib
import hmac

import pytest

from entryboard.core.security import fingerprint


def test_fingerprint_is_deterministic_and_keyed():
    first = fingerprint('198.51.100.7', 'key-a')

    assert first == fingerprint('198.51.100.7', 'key-a')
    assert first == fingerprint(' 198.51.100.7\n', 'key-a')
    assert first != fingerprint('198.51.100.7', 'key-b')
    assert first != fingerprint('198.51.100.8', 'key-a')
    assert first == hmac.new(b'key-a', b'198.51.100.7', hashlib.sha256).hexdigest()


def test_fingerprint_is_not_a_plain_digest():
    assert fingerprint('198.51.100.7', 'key-a') != hashlib.sha256(b'198.51.100.7').hexdigest()


@pytest.mark.parametrize('address, key', [('198.51.100.7', ''), ('', 'key-a'), ('198.51.100.7', None)])
def test_fingerprint_requires_key_and_address(address, key):
    with pytest.raises(ValueError):
        fingerprint(address, key)
