from __future__ import annotations

import argparse

from app.db.session import SessionLocal
from app.services.daily_summary_service import build_daily_summary, send_summary_now
from app.services.email_service import ResendEmailClient
from app.services.recipient_service import resolve_timezone
from app.tasks.daily_summary import run_daily_summary_pass


def main() -> None:
    parser = argparse.ArgumentParser(description="일일 요약 발송 점검 스크립트")
    parser.add_argument("--tick", action="store_true", help="스케줄러 틱 1회 실행")
    parser.add_argument("--send-now", nargs=2, metavar=("EMAIL", "TENANT_ID"), help="즉시 발송 (발송 기록 미갱신)")
    parser.add_argument("--name", default=None, help="--send-now 수신자 표시 이름")
    parser.add_argument("--preview", metavar="TENANT_ID", type=int, help="HTML 렌더링 결과 출력")
    parser.add_argument("--timezone", default=None, help="IANA 시간대 (기본값: DAILY_SUMMARY_DEFAULT_TIMEZONE)")
    args = parser.parse_args()

    if args.tick:
        result = run_daily_summary_pass()
        print("틱 결과:", result.model_dump())

    if args.send_now:
        email, tenant_id = args.send_now
        with SessionLocal() as db:
            result = send_summary_now(
                db,
                destination=email,
                tenant_id=int(tenant_id),
                display_name=args.name,
                timezone_name=args.timezone,
                email_client=ResendEmailClient(),
            )
        print("발송 결과:", result.success, result.message_id or result.error)

    if args.preview is not None:
        with SessionLocal() as db:
            rendered = build_daily_summary(
                db,
                tenant_id=args.preview,
                display_name=args.name or "Preview",
                tz=resolve_timezone(args.timezone),
            )
        print("제목:", rendered.subject)
        print(rendered.html)


if __name__ == "__main__":
    main()
