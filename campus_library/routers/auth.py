from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status

from campus_library.models.principal import PrincipalMixin, PrincipalRole
from campus_library.schemas.principal import (
    AdminRegister,
    AuthResponse,
    LoginPayload,
    PrincipalOut,
    ReaderRegister,
    VolunteerRegister,
    principal_to_schema,
)
from campus_library.security.principal import require_principal
from campus_library.services.auth_service import AuthResult, AuthService, get_auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(message: str, result: AuthResult) -> AuthResponse:
    return AuthResponse(message=message, user=principal_to_schema(result.principal), token=result.token)


@router.post(
    "/register/reader",
    status_code=status.HTTP_201_CREATED,
    response_model=AuthResponse,
)
def register_reader(payload: ReaderRegister, service: AuthService = Depends(get_auth_service)) -> AuthResponse:
    """Register a reader account and sign it in."""
    return _auth_response("Reader registered successfully.", service.register_reader(payload))


@router.post(
    "/register/volunteer",
    status_code=status.HTTP_201_CREATED,
    response_model=AuthResponse,
)
def register_volunteer(payload: VolunteerRegister, service: AuthService = Depends(get_auth_service)) -> AuthResponse:
    return _auth_response("Volunteer registered successfully.", service.register_volunteer(payload))


@router.post(
    "/register/admin",
    status_code=status.HTTP_201_CREATED,
    response_model=AuthResponse,
)
def register_admin(payload: AdminRegister, service: AuthService = Depends(get_auth_service)) -> AuthResponse:
    return _auth_response("Admin registered successfully.", service.register_admin(payload))


@router.post(
    "/login/{role}",
    status_code=status.HTTP_200_OK,
    response_model=AuthResponse,
)
def login(
    role: PrincipalRole,
    payload: LoginPayload,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Authenticate a reader, volunteer or admin and issue a bearer token."""
    result = service.authenticate(role=role, email=payload.email, password=payload.password)
    return _auth_response("Login successful.", result)


@router.get("/me", response_model=PrincipalOut)
def read_current_principal(principal: PrincipalMixin = Depends(require_principal)):
    """Return profile information for the authenticated principal."""
    return principal_to_schema(principal)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def logout(
    request: Request,
    principal: PrincipalMixin = Depends(require_principal),
    service: AuthService = Depends(get_auth_service),
) -> Response:
    """Revoke the bearer token used for this call."""
    _ = principal  # dependency ensures the token was valid
    service.logout(request.state.token_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
