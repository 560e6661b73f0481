"""Session identity for the asset library."""

from assetlib.identity.jwt_service import AuthContext, JwtService  # noqa: F401
