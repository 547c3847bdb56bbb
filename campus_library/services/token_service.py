from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from campus_library.db.session import get_session
from campus_library.models.principal import PrincipalMixin
from campus_library.models.token import AccessToken
from campus_library.security.jwt import JWTSettings, create_access_token, get_jwt_settings

logger = logging.getLogger(__name__)


class TokenService:
    """Encapsulates persistence and lifecycle operations for bearer tokens."""

    def __init__(self, db: Session, settings: JWTSettings) -> None:
        self.db = db
        self.settings = settings

    def issue_token(self, principal: PrincipalMixin) -> str:
        record = AccessToken(
            principal_type=principal.role,
            principal_id=principal.id,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.info("Issued %s token %s", principal.role.value, record.id)
        return create_access_token(
            subject=principal.id,
            role=principal.role.value,
            token_id=record.id,
            settings=self.settings,
        )

    def get_active_token(self, token_id: str) -> Optional[AccessToken]:
        record = self.db.get(AccessToken, token_id)
        if not record or record.revoked:
            return None
        return record

    def touch(self, record: AccessToken) -> None:
        record.last_used_at = datetime.now(timezone.utc)
        self.db.add(record)
        self.db.commit()

    def revoke_token(self, token_id: str) -> bool:
        record = self.db.get(AccessToken, token_id)
        if not record:
            return False
        if not record.revoked:
            record.revoked = True
            record.revoked_at = datetime.now(timezone.utc)
            self.db.add(record)
            self.db.commit()
        return True

    def revoke_all_for_principal(self, principal: PrincipalMixin) -> int:
        now = datetime.now(timezone.utc)
        updated = (
            self.db.query(AccessToken)
            .filter(
                AccessToken.principal_type == principal.role,
                AccessToken.principal_id == principal.id,
                AccessToken.revoked.is_(False),
            )
            .update({"revoked": True, "revoked_at": now}, synchronize_session=False)
        )
        if updated:
            self.db.commit()
        return updated or 0


def get_token_service(
    db: Session = Depends(get_session),
    settings: JWTSettings = Depends(get_jwt_settings),
) -> TokenService:
    return TokenService(db=db, settings=settings)
