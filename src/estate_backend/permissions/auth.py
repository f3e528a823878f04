"""
Identity resolver: turns the authenticated session into a ``Principal``.

Authentication itself happens upstream; it leaves ``user_id`` (and optionally
``is_admin``) on ``request.state``.
"""

import logging
from typing import Annotated, List
from fastapi import Depends, Request
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from estate_backend.api.exceptions import UnauthorizedException
from estate_backend.database import get_db
from estate_backend.model.auth import User
from estate_backend.permissions import roles as role_store
from estate_backend.permissions.core import AccessDecisionPoint, db_get_claims
from estate_backend.permissions.principal import Principal, build_claims

logger = logging.getLogger(__name__)


class AuthenticatedUser(BaseModel):
    """What the authentication layer hands over"""
    user_id: int
    is_admin: bool = False


class PrincipalBuilder:
    """Builder for creating Principal objects with proper claims"""

    @staticmethod
    def build(auth: AuthenticatedUser, db: Session) -> Principal:

        user = db.scalar(select(User).where(User.id == auth.user_id, User.archived_at.is_(None)))
        if user is None:
            raise UnauthorizedException(f"Unknown user {auth.user_id}")

        role_names: List[str] = [role.name for role in role_store.user_roles(db, user.id)]
        claims = build_claims(db_get_claims(user.id, db))

        principal = Principal(
            user_id=user.id,
            is_admin=auth.is_admin,
            roles=role_names,
            claims=claims,
        )
        logger.debug(f"Resolved principal {user.id} with roles {role_names} (admin={principal.is_admin})")
        return principal


def get_authenticated_user(request: Request) -> AuthenticatedUser:
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        raise UnauthorizedException()
    return AuthenticatedUser(user_id=user_id, is_admin=getattr(request.state, "is_admin", False))


def get_current_principal(
    auth: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    db: Annotated[Session, Depends(get_db)],
) -> Principal:
    """Main dependency for getting the current authenticated principal"""
    return PrincipalBuilder.build(auth, db)


def get_access_decision_point(
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[Session, Depends(get_db)],
) -> AccessDecisionPoint:
    return AccessDecisionPoint(principal, db)
