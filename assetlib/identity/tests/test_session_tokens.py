import base64
import hmac
import time
from hashlib import sha256

import pytest

from assetlib.identity.auth import get_optional_auth_context
from assetlib.identity.jwt_service import JwtService, SigningKeyMissing


def test_issue_and_decode():
    svc = JwtService("secret")
    token = svc.issue_token({"sub": "u1", "access_level": "admin"})
    ctx = svc.decode_token(token)
    assert ctx.user_id == "u1"
    assert ctx.access_level == "admin"
    assert ctx.claims["sub"] == "u1"


def test_access_level_defaults():
    svc = JwtService("secret")
    assert svc.decode_token(svc.issue_token({"sub": "u1"})).access_level == "default"


def test_wrong_secret_rejected():
    token = JwtService("secret").issue_token({"sub": "u1"})
    with pytest.raises(ValueError):
        JwtService("other").decode_token(token)


def test_expired_token_rejected():
    svc = JwtService("secret")
    token = svc.issue_token({"sub": "u1", "exp": int(time.time()) - 10})
    with pytest.raises(ValueError):
        svc.decode_token(token)


@pytest.mark.parametrize("claims", [{}, {"sub": "u1", "access_level": "root"}])
def test_invalid_claims_rejected(claims):
    svc = JwtService("secret")
    with pytest.raises(ValueError):
        svc.decode_token(svc.issue_token(claims))


def test_malformed_token_rejected():
    with pytest.raises(ValueError):
        JwtService("secret").decode_token("not-a-token")


def test_missing_secret(monkeypatch):
    monkeypatch.delenv("AUTH_JWT_SIGNING", raising=False)
    with pytest.raises(SigningKeyMissing):
        JwtService().issue_token({"sub": "u1"})


def test_optional_auth_context(monkeypatch):
    monkeypatch.setenv("AUTH_JWT_SIGNING", "secret")
    token = JwtService().issue_token({"sub": "u1"})
    assert get_optional_auth_context(authorization=f"Bearer {token}", session_token=None).user_id == "u1"
    assert get_optional_auth_context(authorization=None, session_token=token).user_id == "u1"
    assert get_optional_auth_context(authorization=None, session_token=None) is None
    assert get_optional_auth_context(authorization="Bearer junk", session_token=None) is None


def test_optional_auth_context_surfaces_missing_signing_key(monkeypatch):
    token = JwtService("secret").issue_token({"sub": "u1"})
    monkeypatch.delenv("AUTH_JWT_SIGNING", raising=False)
    with pytest.raises(SigningKeyMissing):
        get_optional_auth_context(authorization=f"Bearer {token}", session_token=None)
    assert get_optional_auth_context(authorization=None, session_token=None) is None


def test_non_object_payload_rejected():
    svc = JwtService("secret")
    header, _, _ = svc.issue_token({"sub": "u1"}).split(".")
    payload = base64.urlsafe_b64encode(b"[1, 2]").rstrip(b"=").decode()
    signing_input = f"{header}.{payload}"
    sig = hmac.new(b"secret", signing_input.encode(), sha256).digest()
    token = signing_input + "." + base64.urlsafe_b64encode(sig).rstrip(b"=").decode()
    with pytest.raises(ValueError):
        svc.decode_token(token)
