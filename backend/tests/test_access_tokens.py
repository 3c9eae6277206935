"""
Unit tests for the access token codec: issue/validate, expiry, wrong secret,
issuer checks, algorithm substitution and claim tampering.
"""
from __future__ import annotations

import base64
import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from chirpy.auth.errors import InvalidTokenError, SigningError
from chirpy.auth.tokens import AccessTokenCodec, make_jwt, validate_jwt

SECRET = "secret-a"


def _b64url(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64url_decode(segment: str) -> dict:
    padded = segment + "=" * (-len(segment) % 4)
    return json.loads(base64.urlsafe_b64decode(padded))


def test_make_and_validate_roundtrip():
    user_id = uuid.uuid4()
    token = make_jwt(user_id, SECRET, timedelta(hours=1))
    assert isinstance(token, str)
    assert token.count(".") == 2
    assert validate_jwt(token, SECRET) == user_id


def test_claims_are_registered_claims_only():
    user_id = uuid.uuid4()
    now = datetime.now(timezone.utc).replace(microsecond=0)
    token = make_jwt(user_id, SECRET, timedelta(hours=1), now=now)

    claims = jwt.get_unverified_claims(token)
    assert set(claims) == {"iss", "sub", "iat", "exp", "jti"}
    assert claims["iss"] == "chirpy"
    assert claims["sub"] == str(user_id)
    assert claims["iat"] == int(now.timestamp())
    assert claims["exp"] - claims["iat"] == 3600
    assert jwt.get_unverified_header(token)["alg"] == "HS256"


def test_tokens_minted_in_the_same_second_differ():
    user_id = uuid.uuid4()
    now = datetime.now(timezone.utc).replace(microsecond=0)
    first = make_jwt(user_id, SECRET, timedelta(hours=1), now=now)
    second = make_jwt(user_id, SECRET, timedelta(hours=1), now=now)

    assert first != second
    assert jwt.get_unverified_claims(first)["jti"] != jwt.get_unverified_claims(second)["jti"]
    assert validate_jwt(first, SECRET) == validate_jwt(second, SECRET) == user_id


def test_expired_token_is_rejected():
    token = make_jwt(uuid.uuid4(), SECRET, timedelta(seconds=-1))
    with pytest.raises(InvalidTokenError):
        validate_jwt(token, SECRET)


def test_wrong_secret_is_rejected():
    token = make_jwt(uuid.uuid4(), "secret-b", timedelta(hours=1))
    with pytest.raises(InvalidTokenError):
        validate_jwt(token, SECRET)


@pytest.mark.parametrize("token", ["", "invalid.token.here", "not-a-jwt"])
def test_garbage_is_rejected(token):
    with pytest.raises(InvalidTokenError):
        validate_jwt(token, SECRET)


def test_wrong_issuer_is_rejected_even_when_correctly_signed():
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode(
        {"iss": "wrong-issuer", "sub": str(uuid.uuid4()), "iat": now, "exp": now + 3600},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError):
        validate_jwt(token, SECRET)


def test_missing_exp_is_rejected():
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode({"iss": "chirpy", "sub": str(uuid.uuid4()), "iat": now}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        validate_jwt(token, SECRET)


def test_non_uuid_subject_is_rejected():
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode(
        {"iss": "chirpy", "sub": "user-42", "iat": now, "exp": now + 3600},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError):
        validate_jwt(token, SECRET)


def test_other_hmac_algorithms_are_accepted():
    user_id = uuid.uuid4()
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode(
        {"iss": "chirpy", "sub": str(user_id), "iat": now, "exp": now + 3600},
        SECRET,
        algorithm="HS512",
    )
    assert validate_jwt(token, SECRET) == user_id


def test_alg_none_is_rejected():
    now = int(datetime.now(timezone.utc).timestamp())
    header = _b64url({"alg": "none", "typ": "JWT"})
    payload = _b64url({"iss": "chirpy", "sub": str(uuid.uuid4()), "iat": now, "exp": now + 3600})
    with pytest.raises(InvalidTokenError):
        validate_jwt(f"{header}.{payload}.", SECRET)


def test_asymmetric_alg_header_is_rejected():
    token = make_jwt(uuid.uuid4(), SECRET, timedelta(hours=1))
    _, payload, signature = token.split(".")
    forged_header = _b64url({"alg": "RS256", "typ": "JWT"})
    with pytest.raises(InvalidTokenError):
        validate_jwt(f"{forged_header}.{payload}.{signature}", SECRET)


def test_tampered_issuer_breaks_signature():
    token = make_jwt(uuid.uuid4(), SECRET, timedelta(hours=1))
    header, payload, signature = token.split(".")
    claims = _b64url_decode(payload)
    claims["iss"] = "someone-else"
    with pytest.raises(InvalidTokenError):
        validate_jwt(f"{header}.{_b64url(claims)}.{signature}", SECRET)


def test_tampered_subject_breaks_signature():
    token = make_jwt(uuid.uuid4(), SECRET, timedelta(hours=1))
    header, payload, signature = token.split(".")
    claims = _b64url_decode(payload)
    claims["sub"] = str(uuid.uuid4())
    with pytest.raises(InvalidTokenError):
        validate_jwt(f"{header}.{_b64url(claims)}.{signature}", SECRET)


def test_empty_secret_cannot_sign_or_validate():
    with pytest.raises(SigningError):
        make_jwt(uuid.uuid4(), "", timedelta(hours=1))
    token = make_jwt(uuid.uuid4(), SECRET, timedelta(hours=1))
    with pytest.raises(InvalidTokenError):
        validate_jwt(token, "")


def test_codec_binds_configuration():
    codec = AccessTokenCodec("codec-secret", issuer="other-service", ttl=timedelta(minutes=5))
    user_id = uuid.uuid4()
    token = codec.issue(user_id)
    assert codec.validate(token) == user_id

    claims = jwt.get_unverified_claims(token)
    assert claims["iss"] == "other-service"
    assert claims["exp"] - claims["iat"] == 300

    # Default issuer "chirpy" does not accept it.
    with pytest.raises(InvalidTokenError):
        validate_jwt(token, "codec-secret")


def test_codec_defaults_come_from_settings():
    codec = AccessTokenCodec()
    assert codec.secret == "test_jwt_secret"
    assert codec.issuer == "chirpy"
    assert codec.ttl == timedelta(hours=1)
