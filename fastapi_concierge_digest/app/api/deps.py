from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.roles import DEFAULT_READ_ROLES, RoleCode
from app.core.scheduler import DailySummaryScheduler
from app.core.security import TokenDecodeError, decode_access_token
from app.db.session import get_db
from app.models.domain import User
from app.services.email_service import EmailClient, ResendEmailClient

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


@dataclass
class AuthenticatedUser:
    user: User
    roles: set[str]
    token_jti: str

    @property
    def id(self) -> int:
        return self.user.id

    @property
    def tenant_id(self) -> int:
        return self.user.tenant_id

    @property
    def is_super_admin(self) -> bool:
        return RoleCode.SUPER_ADMIN.value in self.roles


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> AuthenticatedUser:
    unauthorized = HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="인증이 필요합니다.")
    try:
        payload = decode_access_token(token)
    except TokenDecodeError as exc:
        raise unauthorized from exc

    try:
        user_id = int(payload.subject)
    except ValueError as exc:
        raise unauthorized from exc

    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise unauthorized
    # 발급 이후 소속 테넌트나 역할이 바뀐 토큰은 거부
    if payload.tenant_id is not None and payload.tenant_id != user.tenant_id:
        raise unauthorized
    if payload.role is not None and payload.role != user.role:
        raise unauthorized

    return AuthenticatedUser(user=user, roles={user.role}, token_jti=payload.jti)


def require_roles(allowed_roles: set[str] | None = None):
    allowed = allowed_roles or DEFAULT_READ_ROLES

    def _dependency(current_user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if not current_user.roles.intersection(allowed):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="권한이 없습니다.")
        return current_user

    return _dependency


def ensure_tenant_access(current_user: AuthenticatedUser, tenant_id: int) -> None:
    if current_user.is_super_admin or current_user.tenant_id == tenant_id:
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="다른 테넌트에 접근할 수 없습니다.")


def get_email_client() -> EmailClient:
    return ResendEmailClient()


def get_summary_scheduler(request: Request) -> DailySummaryScheduler | None:
    return getattr(request.app.state, "summary_scheduler", None)
