import pytest

from catalog_api.security import InvalidToken, hash_password, issue_token, verify_password, verify_token

SECRET = "test-secret"


def test_hash_and_verify_round_trip():
    hashed = hash_password("hunter2")
    assert hashed != "hunter2"
    assert verify_password("hunter2", hashed)


def test_verify_rejects_other_password():
    assert not verify_password("hunter3", hash_password("hunter2"))


def test_hashes_are_salted():
    assert hash_password("same") != hash_password("same")


@pytest.mark.parametrize("password,stored", [
    ("", "whatever"),
    ("pw", ""),
    ("pw", "not-a-real-hash"),
])
def test_verify_never_raises_on_bad_input(password, stored):
    assert verify_password(password, stored) is False


def test_token_round_trip():
    token = issue_token(42, SECRET)
    assert verify_token(token, SECRET) == 42


def test_token_signed_with_other_secret_is_rejected():
    token = issue_token(42, "another-secret")
    with pytest.raises(InvalidToken):
        verify_token(token, SECRET)


def test_tampered_payload_is_rejected():
    header, _, signature = issue_token(1, SECRET).split(".")
    _, forged_payload, _ = issue_token(2, SECRET).split(".")
    with pytest.raises(InvalidToken):
        verify_token(f"{header}.{forged_payload}.{signature}", SECRET)


def test_expired_token_is_rejected():
    token = issue_token(7, SECRET, expires_hours=-1)
    with pytest.raises(InvalidToken, match="expired"):
        verify_token(token, SECRET)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_is_rejected(token):
    with pytest.raises(InvalidToken):
        verify_token(token, SECRET)


def test_issue_requires_secret():
    with pytest.raises(ValueError):
        issue_token(1, "")


def test_hash_rejects_blank_password():
    with pytest.raises(ValueError):
        hash_password("")


def test_verify_blank_password_against_real_hash():
    assert verify_password("", hash_password("pw")) is False
