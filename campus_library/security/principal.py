from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from campus_library.db.session import get_session
from campus_library.models.principal import PRINCIPAL_MODELS, Admin, PrincipalMixin, PrincipalRole, Reader, Volunteer
from campus_library.security.jwt import InvalidTokenError, JWTSettings, TokenType, decode_token, get_jwt_settings
from campus_library.services.token_service import TokenService, get_token_service

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": code, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_session),
    token_service: TokenService = Depends(get_token_service),
    settings: JWTSettings = Depends(get_jwt_settings),
) -> PrincipalMixin:
    if credentials is None or not credentials.credentials:
        raise _unauthorized("not_authenticated", "Bearer token is required.")

    try:
        payload = decode_token(credentials.credentials, settings)
    except InvalidTokenError as exc:
        raise _unauthorized("invalid_token", "Unable to validate token.") from exc

    if payload.token_type != TokenType.ACCESS:
        raise _unauthorized("invalid_token_type", "Access token required.")

    try:
        role = PrincipalRole(payload.role)
    except ValueError as exc:
        raise _unauthorized("invalid_token", "Unknown principal type.") from exc

    record = token_service.get_active_token(payload.token_id)
    if record is None or record.principal_type != role or record.principal_id != payload.subject:
        raise _unauthorized("invalid_session", "Token is revoked or unknown.")

    principal = db.get(PRINCIPAL_MODELS[role], payload.subject)
    if principal is None:
        raise _unauthorized("principal_not_found", "Account no longer exists.")

    token_service.touch(record)
    request.state.token_id = record.id
    return principal


def require_roles(*roles: PrincipalRole) -> Callable[..., PrincipalMixin]:
    """Build a dependency that only admits the given principal types."""

    allowed = frozenset(roles)

    def _dependency(principal: PrincipalMixin = Depends(require_principal)) -> PrincipalMixin:
        if principal.role not in allowed:
            names = ", ".join(sorted(role.value for role in allowed))
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "forbidden", "message": f"This action requires one of: {names}."},
            )
        return principal

    return _dependency


def require_reader(principal: PrincipalMixin = Depends(require_roles(PrincipalRole.READER))) -> Reader:
    return principal  # type: ignore[return-value]


def require_volunteer(principal: PrincipalMixin = Depends(require_roles(PrincipalRole.VOLUNTEER))) -> Volunteer:
    return principal  # type: ignore[return-value]


def require_admin(principal: PrincipalMixin = Depends(require_roles(PrincipalRole.ADMIN))) -> Admin:
    return principal  # type: ignore[return-value]


require_staff = require_roles(PrincipalRole.VOLUNTEER, PrincipalRole.ADMIN)
