from __future__ import annotations

import json
from datetime import datetime
from typing import Iterable

# 대시보드 규칙: 0=일요일 ... 6=토요일
SUNDAY = 0
SATURDAY = 6
WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
MONDAY_TO_FRIDAY = frozenset({1, 2, 3, 4, 5})


def parse_weekdays(raw: str | Iterable[int | str] | None) -> frozenset[int]:
    """
    저장된 요일 설정을 frozenset[int] 로 변환한다.

    허용 형식:
    - JSON 배열 문자열: '["1","2","5"]' / '[1, 2, 5]'
    - 콤마 구분 문자열: "1,2,5"
    - 정수/문자열 iterable
    """
    if raw is None:
        return frozenset()

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return frozenset()
        if text.startswith("["):
            try:
                items = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValueError(f"요일 설정 JSON 파싱 실패: {raw!r}") from exc
            if not isinstance(items, list):
                raise ValueError(f"요일 설정은 배열이어야 합니다: {raw!r}")
        else:
            items = [part for part in text.split(",") if part.strip()]
    else:
        items = list(raw)

    days: set[int] = set()
    for item in items:
        days.add(_to_weekday(item))
    return frozenset(days)


def local_weekday(local_dt: datetime) -> int:
    """datetime.weekday() (월=0) 를 대시보드 규칙 (일=0) 으로 변환."""
    return (local_dt.weekday() + 1) % 7


def format_weekdays(days: Iterable[int]) -> str:
    return ",".join(WEEKDAY_LABELS[day] for day in sorted(days))


def _to_weekday(value: int | str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"요일 값이 올바르지 않습니다: {value!r}")
    try:
        day = int(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"요일 값이 올바르지 않습니다: {value!r}") from exc
    if day < SUNDAY or day > SATURDAY:
        raise ValueError(f"요일 값 범위 오류 (0-6): {value!r}")
    return day
