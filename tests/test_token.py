import time
import pytest
from jose import jwt

from image_gateway.auth.token import TokenVerifier, bearer_token
from image_gateway.exceptions import AuthError
from image_gateway.settings import Settings

SECRET = "unit-secret"


def encode(payload, secret=SECRET, algorithm="HS256"):
    return jwt.encode(payload, secret, algorithm=algorithm)


@pytest.fixture
def verifier():
    return TokenVerifier(SECRET)


def test_bearer_token_extracts_token():
    assert bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"


@pytest.mark.parametrize("header", [None, "", "Basic dXNlcjpwYXNz", "bearer abc", "Bearer "])
def test_bearer_token_rejects_malformed_header(header):
    with pytest.raises(AuthError) as exc:
        bearer_token(header)
    assert exc.value.status_code == 401


def test_verify_returns_claim(verifier):
    exp = int(time.time()) + 600
    claim = verifier.verify(encode({"user_id": "u-42", "exp": exp, "role": "member"}))
    assert claim.user_id == "u-42"
    assert int(claim.expires_at.timestamp()) == exp
    assert claim.payload["role"] == "member"


def test_verify_without_expiry(verifier):
    claim = verifier.verify(encode({"user_id": 7}))
    assert claim.user_id == "7"
    assert claim.expires_at is None


def test_verify_expired(verifier):
    with pytest.raises(AuthError, match="Token expired"):
        verifier.verify(encode({"user_id": "u", "exp": int(time.time()) - 10}))


def test_verify_invalid_signature(verifier):
    with pytest.raises(AuthError, match="Invalid signature"):
        verifier.verify(encode({"user_id": "u"}, secret="someone-else"))


def test_verify_malformed_token(verifier):
    with pytest.raises(AuthError, match="Token verification failed"):
        verifier.verify("not-a-jwt")


def test_verify_rejects_unexpected_algorithm(verifier):
    token = encode({"user_id": "u"}, algorithm="HS512")
    with pytest.raises(AuthError):
        verifier.verify(token)


def test_verify_missing_identity(verifier):
    with pytest.raises(AuthError, match="Token missing user ID"):
        verifier.verify(encode({"sub": "u"}))


def test_verify_custom_identity_claim():
    verifier = TokenVerifier(SECRET, identity_claim="sub")
    assert verifier.verify(encode({"sub": "abc"})).user_id == "abc"


def test_verify_audience():
    verifier = TokenVerifier(SECRET, audience="image-gateway")
    assert verifier.verify(encode({"user_id": "u", "aud": "image-gateway"})).user_id == "u"
    with pytest.raises(AuthError, match="Claim validation failed"):
        verifier.verify(encode({"user_id": "u", "aud": "someone-else"}))


def test_verify_without_secret():
    verifier = TokenVerifier(None)
    with pytest.raises(AuthError, match="Server configuration error"):
        verifier.verify(encode({"user_id": "u"}))


def test_from_settings():
    settings = Settings(jwt_secret="s", jwt_identity_claim="uid", jwt_algorithms=["HS384"])
    verifier = TokenVerifier.from_settings(settings)
    assert verifier.secret == "s"
    assert verifier.identity_claim == "uid"
    assert verifier.verify(encode({"uid": "x"}, secret="s", algorithm="HS384")).user_id == "x"
