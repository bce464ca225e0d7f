"""Credentials — verifies HTTP Basic checks against the stored password digest."""

from domain_settings.core.credentials import credentials_match, hash_password, is_password_digest


def test_hash_password_is_sha256_hex():
    digest = hash_password("password")
    assert digest == "5e884898da28047151d0e56f8dc6292773603d0d6aabbdd62a11ef721d1542d8"
    assert is_password_digest(digest)
    assert not is_password_digest("password")


def test_no_configured_username_is_open():
    assert credentials_match(None, None, None, None) is True
    assert credentials_match("", "whatever", None, None) is True


def test_matches_digest():
    stored = hash_password("hunter2")
    assert credentials_match("admin", stored, "admin", "hunter2") is True
    assert credentials_match("admin", stored, "admin", "wrong") is False
    assert credentials_match("admin", stored, "eve", "hunter2") is False
    assert credentials_match("admin", stored, None, None) is False


def test_plaintext_stored_password_still_matches():
    assert credentials_match("admin", "hunter2", "admin", "hunter2") is True
