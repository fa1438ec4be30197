"""Unit tests for token fingerprints: determinism, length, known vectors, no collisions."""

import secrets

from oauth2_token_store.core.fingerprint import FINGERPRINT_LENGTH, fingerprint_token


def test_fingerprint_is_deterministic():
    token = secrets.token_urlsafe(32)
    assert fingerprint_token(token) == fingerprint_token(token)


def test_fingerprint_known_vectors():
    """SHA256 hex of UTF-8 bytes, so fingerprints match across languages and tools."""
    assert fingerprint_token("") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    assert fingerprint_token("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def test_fingerprint_fixed_length_hex():
    for token in ["x", secrets.token_urlsafe(256), "токен-ñ-🔑"]:
        fp = fingerprint_token(token)
        assert len(fp) == FINGERPRINT_LENGTH
        assert all(c in "0123456789abcdef" for c in fp)


def test_fingerprint_does_not_contain_token():
    token = "plain-token-value"
    assert token not in fingerprint_token(token)


def test_fingerprints_do_not_collide_over_sample():
    tokens = {secrets.token_urlsafe(32) for _ in range(5000)}
    fingerprints = {fingerprint_token(t) for t in tokens}
    assert len(fingerprints) == len(tokens)
