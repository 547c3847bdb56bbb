from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_library.core.settings import AppSettings, get_app_settings
from campus_library.crud.principal import get_principal_by_email
from campus_library.db.session import get_session
from campus_library.models.catalog import Department, Hall
from campus_library.models.engagement import Activity
from campus_library.models.principal import PRINCIPAL_MODELS, Admin, PrincipalMixin, PrincipalRole, Reader, Volunteer
from campus_library.schemas.principal import (
    AdminRegister,
    ReaderRegister,
    RegisterBase,
    VolunteerRegister,
)
from campus_library.security.hash import hash_password, verify_password
from campus_library.services.point_service import PointService
from campus_library.services.token_service import TokenService, get_token_service

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    principal: PrincipalMixin
    token: str


class AuthService:
    """Business logic for registration, login and logout of every principal type."""

    def __init__(self, session: Session, tokens: TokenService, settings: AppSettings) -> None:
        self.session = session
        self.tokens = tokens
        self.settings = settings

    def _ensure_email_free(self, model: type[PrincipalMixin], email: str) -> None:
        if get_principal_by_email(model, email, self.session):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "email_taken", "message": "Email already registered."},
            )

    def _ensure_affiliation(self, hall_id: str, dept_id: str) -> None:
        if self.session.get(Hall, hall_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "hall_not_found", "message": "Hall not found."},
            )
        if self.session.get(Department, dept_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "department_not_found", "message": "Department not found."},
            )

    def _persist(self, principal: PrincipalMixin) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "email_taken", "message": "Email already registered."},
            ) from exc
        self.session.refresh(principal)

    @staticmethod
    def _common_fields(data: RegisterBase) -> dict:
        return {
            "name": data.name,
            "email": data.email,
            "contact": data.contact,
            "password_hash": hash_password(data.password),
        }

    def register_reader(self, data: ReaderRegister) -> AuthResult:
        self._ensure_email_free(Reader, data.email)
        self._ensure_affiliation(data.hall_id, data.dept_id)

        reader = Reader(
            **self._common_fields(data),
            registration_no=data.registration_no,
            session=data.session,
            hall_id=data.hall_id,
            dept_id=data.dept_id,
            gender=data.gender,
            total_points=0,
        )
        self.session.add(reader)
        self.session.flush()
        PointService(self.session).award(reader, Activity.READER_REGISTRATION)
        self._persist(reader)
        logger.info("Registered reader %s", reader.id)
        return AuthResult(principal=reader, token=self.tokens.issue_token(reader))

    def register_volunteer(self, data: VolunteerRegister) -> AuthResult:
        self._ensure_email_free(Volunteer, data.email)
        self._ensure_affiliation(data.hall_id, data.dept_id)

        volunteer = Volunteer(
            **self._common_fields(data),
            registration_no=data.registration_no,
            session=data.session,
            address=data.address,
            room_no=data.room_no,
            hall_id=data.hall_id,
            dept_id=data.dept_id,
        )
        self.session.add(volunteer)
        self._persist(volunteer)
        logger.info("Registered volunteer %s", volunteer.id)
        return AuthResult(principal=volunteer, token=self.tokens.issue_token(volunteer))

    def register_admin(self, data: AdminRegister) -> AuthResult:
        if not self.settings.admin_registration_enabled:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "registration_closed", "message": "Admin registration is disabled."},
            )
        self._ensure_email_free(Admin, data.email)

        admin = Admin(**self._common_fields(data))
        self.session.add(admin)
        self._persist(admin)
        logger.info("Registered admin %s", admin.id)
        return AuthResult(principal=admin, token=self.tokens.issue_token(admin))

    def authenticate(self, role: PrincipalRole, email: str, password: str) -> AuthResult:
        model = PRINCIPAL_MODELS[role]
        try:
            principal = get_principal_by_email(model, email, self.session)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"code": "invalid_email", "message": "Invalid email address."},
            ) from exc

        if not principal or not verify_password(password, principal.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "invalid_credentials", "message": "Invalid email or password."},
            )

        return AuthResult(principal=principal, token=self.tokens.issue_token(principal))

    def logout(self, token_id: str) -> None:
        self.tokens.revoke_token(token_id)


def get_auth_service(
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
    settings: AppSettings = Depends(get_app_settings),
) -> AuthService:
    return AuthService(session=session, tokens=tokens, settings=settings)
