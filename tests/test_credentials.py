"""Join passwords, invite tokens and invite URLs."""

import string

import pytest

from studio_app.services.invites import (
    DEFAULT_TOKEN_BYTES,
    InvalidBaseUrl,
    build_invite_url,
    generate_invite_token,
)
from studio_app.services.passwords import generate_join_password, hash_join_password

URLSAFE = set(string.ascii_letters + string.digits + "-_")


def test_join_password_default_length():
    password = generate_join_password()
    assert len(password) == 16
    assert set(password) <= URLSAFE


@pytest.mark.parametrize("length", [1, 8, 40])
def test_join_password_exact_length(length: int):
    assert len(generate_join_password(length)) == length


def test_join_password_rejects_non_positive_length():
    with pytest.raises(ValueError):
        generate_join_password(0)


def test_join_passwords_are_random():
    assert generate_join_password() != generate_join_password()


def test_hash_join_password_is_salted():
    first = hash_join_password("correct horse battery")
    second = hash_join_password("correct horse battery")

    assert len(first.hash) == 128
    assert len(first.salt) == 32
    assert first.salt != second.salt
    assert first.hash != second.hash
    assert first.updated_at.tzinfo is not None


def test_invite_token_is_hex_of_expected_size():
    token = generate_invite_token()
    assert len(token) == DEFAULT_TOKEN_BYTES * 2
    int(token, 16)
    assert generate_invite_token() != token


def test_build_invite_url_default_path():
    assert (
        build_invite_url("https://studio.example.com", "abc123")
        == "https://studio.example.com/invite?inviteToken=abc123"
    )


def test_build_invite_url_normalizes_path_and_trailing_slash():
    url = build_invite_url("http://localhost:3000/", "tok", path="join")
    assert url == "http://localhost:3000/join?inviteToken=tok"


@pytest.mark.parametrize("base_url", ["", "   ", "studio.example.com", "ftp://example.com", "https://"])
def test_build_invite_url_rejects_bad_base(base_url: str):
    with pytest.raises(InvalidBaseUrl):
        build_invite_url(base_url, "tok")
