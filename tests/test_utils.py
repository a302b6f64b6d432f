import re

from folio_cms.utils import (
    create_access_token,
    decode_token,
    hash_password,
    now_iso,
    sanitize_filename,
    slugify,
    verify_password,
)


def test_slugify():
    assert slugify("Hello World!") == "hello-world"
    assert slugify("  Multiple   spaces -- here ") == "multiple-spaces-here"
    assert slugify("Café") == "caf"
    assert slugify("!!!") == ""


def test_sanitize_filename():
    assert sanitize_filename("My Photo (2023) - Beach Sunset!.JPG") == "my-photo-2023-beach-sunset"
    assert sanitize_filename("Crème_brûlée.png") == "creme-brulee"
    assert sanitize_filename("a" * 150 + ".jpg") == "a" * 100


def test_now_iso_has_millisecond_precision():
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", now_iso())


def test_password_round_trip():
    hashed = hash_password("correct-horse")
    assert hashed != "correct-horse"
    assert verify_password("correct-horse", hashed)
    assert not verify_password("wrong", hashed)


def test_access_token_carries_subject():
    token = create_access_token({"sub": "user_1"})
    payload = decode_token(token)
    assert payload["sub"] == "user_1"
    assert payload["type"] == "access"
