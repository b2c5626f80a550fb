from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Protocol
from uuid import uuid4

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

RESEND_TESTING_RESTRICTION = "testing emails"


class EmailDispatchError(RuntimeError):
    """Resend API 호출 오류."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class EmailSendResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


class EmailClient(Protocol):
    def send(self, to: str, subject: str, html: str) -> EmailSendResult:
        ...


class ResendEmailClient:
    """
    Resend HTTP API 로 HTML 메일을 보낸다.

    send() 는 예외를 올리지 않고 EmailSendResult 로 성공/실패를 돌려준다.
    호출 시간은 EMAIL_TIMEOUT 으로 제한된다.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        sender: str | None = None,
        timeout: float | None = None,
        mock_mode: bool | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.base_url = (base_url or settings.resend_base_url).rstrip("/")
        self.sender = sender or settings.email_from
        self.timeout = timeout if timeout is not None else settings.email_timeout
        self.mock_mode = settings.email_mock_mode if mock_mode is None else mock_mode
        self._transport = transport

    def send(self, to: str, subject: str, html: str) -> EmailSendResult:
        if self.mock_mode:
            message_id = f"mock-{uuid4().hex}"
            logger.info("[MOCK] 메일 발송 (to=%s, subject=%s, id=%s)", to, subject, message_id)
            return EmailSendResult(success=True, message_id=message_id)

        try:
            message_id = self._post_email({
                "from": self.sender,
                "to": [to],
                "subject": subject,
                "html": html,
            })
        except EmailDispatchError as exc:
            logger.warning("메일 발송 실패 (to=%s, status=%s): %s", to, exc.status_code, exc)
            if RESEND_TESTING_RESTRICTION in str(exc):
                logger.warning(
                    "Resend 테스트 계정 제한: 인증된 도메인 또는 계정 소유자 주소로만 발송 가능합니다. "
                    "https://resend.com/domains 에서 도메인을 인증하세요."
                )
            return EmailSendResult(success=False, error=str(exc))

        logger.info("메일 발송 완료 (to=%s, id=%s)", to, message_id)
        return EmailSendResult(success=True, message_id=message_id)

    # ----------------------------------------------------------------------- #
    # Internal helpers

    def _post_email(self, payload: Dict[str, Any]) -> str | None:
        if not self.api_key:
            raise EmailDispatchError("RESEND_API_KEY 환경 변수가 설정되지 않았습니다.")

        url = f"{self.base_url}/emails"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as exc:  # 네트워크/타임아웃 오류
            raise EmailDispatchError(f"Resend API 호출 실패: {exc}") from exc

        if response.status_code >= 400:
            raise EmailDispatchError(
                f"Resend API HTTP 오류: {response.status_code} {_error_message(response)}".strip(),
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError:
            body = {}
        return body.get("id") if isinstance(body, dict) else None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or "")
    return ""
