"""Minimal HS256 session tokens for the asset library."""
from __future__ import annotations

import base64
import hmac
import json
import time
from dataclasses import dataclass, field
from hashlib import sha256
from typing import Any, Dict, Optional

from assetlib.config import runtime_config

ACCESS_LEVELS = ("default", "manager", "admin")


class SigningKeyMissing(RuntimeError):
    """AUTH_JWT_SIGNING is not configured; a server fault, not a bad token."""


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


@dataclass
class AuthContext:
    user_id: str
    access_level: str = "default"
    claims: Dict[str, Any] = field(default_factory=dict)


class JwtService:
    def __init__(self, secret: Optional[str] = None) -> None:
        self._secret = secret

    def _get_secret(self) -> bytes:
        secret = self._secret or runtime_config.get_jwt_signing_secret()
        if not secret:
            raise SigningKeyMissing("AUTH_JWT_SIGNING is not configured")
        return secret.encode("utf-8")

    def issue_token(self, claims: Dict[str, object]) -> str:
        header = {"alg": "HS256", "typ": "JWT"}
        signing_input = ".".join(
            [
                _b64url(json.dumps(header, separators=(",", ":"), sort_keys=True).encode()),
                _b64url(json.dumps(claims, separators=(",", ":"), sort_keys=True).encode()),
            ]
        )
        signature = hmac.new(self._get_secret(), signing_input.encode("utf-8"), sha256).digest()
        return signing_input + "." + _b64url(signature)

    def decode_token(self, token: str) -> AuthContext:
        try:
            header_b64, payload_b64, sig_b64 = token.split(".")
        except ValueError:
            raise ValueError("invalid token")
        signing_input = header_b64 + "." + payload_b64
        expected_sig = hmac.new(self._get_secret(), signing_input.encode("utf-8"), sha256).digest()
        if not hmac.compare_digest(expected_sig, _b64url_decode(sig_b64)):
            raise ValueError("invalid signature")
        payload = json.loads(_b64url_decode(payload_b64))
        if not isinstance(payload, dict):
            raise ValueError("token payload must be an object")
        exp = payload.get("exp")
        if exp is not None and float(exp) < time.time():
            raise ValueError("token expired")
        if not payload.get("sub"):
            raise ValueError("token has no subject")
        access_level = payload.get("access_level") or "default"
        if access_level not in ACCESS_LEVELS:
            raise ValueError(f"unknown access level: {access_level}")
        return AuthContext(user_id=payload["sub"], access_level=access_level, claims=payload)


def default_jwt_service() -> JwtService:
    return JwtService()
