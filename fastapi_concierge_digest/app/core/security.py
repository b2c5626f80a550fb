from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from jose import JWTError, jwt

from app.core.config import settings


@dataclass
class AccessToken:
    token: str
    expires_at: datetime
    jti: str


@dataclass
class TokenPayload:
    subject: str
    tenant_id: int | None
    role: str | None
    expires_at: datetime
    jti: str


class TokenDecodeError(RuntimeError):
    pass


def create_access_token(
    user_id: int,
    *,
    tenant_id: int,
    role: str,
    expires_delta: timedelta | None = None,
) -> AccessToken:
    """관리 API 용 access token. 테넌트/역할은 발급 시점 값으로 기록된다."""
    now = datetime.now(timezone.utc)
    expires = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    jti = uuid4().hex
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "tid": tenant_id,
        "role": role,
        "exp": int(expires.timestamp()),
        "iat": int(now.timestamp()),
        "jti": jti,
    }
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return AccessToken(token=token, expires_at=expires, jti=jti)


def decode_access_token(token: str) -> TokenPayload:
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise TokenDecodeError("토큰 검증에 실패했습니다.") from exc

    subject = payload.get("sub")
    jti = payload.get("jti")
    exp = payload.get("exp")
    if not subject or not jti or exp is None:
        raise TokenDecodeError("토큰 페이로드가 올바르지 않습니다.")

    tenant_id = payload.get("tid")
    try:
        tenant_id = int(tenant_id) if tenant_id is not None else None
    except (TypeError, ValueError) as exc:
        raise TokenDecodeError("토큰의 테넌트 정보가 올바르지 않습니다.") from exc

    return TokenPayload(
        subject=str(subject),
        tenant_id=tenant_id,
        role=payload.get("role"),
        expires_at=datetime.fromtimestamp(int(exp), tz=timezone.utc),
        jti=str(jti),
    )
