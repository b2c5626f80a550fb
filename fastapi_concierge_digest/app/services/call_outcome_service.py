from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from app.core.codes import CallOutcome, CallStatus


class FollowUpBucket(str, Enum):
    NO_ANSWER = "no_answer"
    VOICEMAIL = "voicemail"
    OTHER_FAILURE = "other_failure"


@dataclass(frozen=True)
class OutcomeClassification:
    outcome: CallOutcome | None
    bucket: FollowUpBucket | None
    label: str


OUTCOME_BUCKETS: dict[CallOutcome, FollowUpBucket | None] = {
    CallOutcome.CONFIRMED: None,
    CallOutcome.VOICEMAIL: FollowUpBucket.VOICEMAIL,
    CallOutcome.NO_ANSWER: FollowUpBucket.NO_ANSWER,
    CallOutcome.BUSY: FollowUpBucket.OTHER_FAILURE,
    CallOutcome.FAILED: FollowUpBucket.OTHER_FAILURE,
}

OUTCOME_LABELS: dict[CallOutcome, str] = {
    CallOutcome.CONFIRMED: "Confirmed",
    CallOutcome.VOICEMAIL: "Voicemail left",
    CallOutcome.NO_ANSWER: "No answer",
    CallOutcome.BUSY: "Line busy",
    CallOutcome.FAILED: "Call failed",
}

# 결과 코드 없이 실패 처리된 통화
UNRECORDED_FAILURE = OutcomeClassification(
    outcome=None,
    bucket=FollowUpBucket.OTHER_FAILURE,
    label="Call failed (no outcome recorded)",
)
NOT_FOLLOW_UP = OutcomeClassification(outcome=None, bucket=None, label="In progress")


def classify_call(status: str | None, outcome: CallOutcome | str | None) -> OutcomeClassification:
    """
    통화 상태/결과 코드 → 후속 조치 분류.

    결과 코드가 있으면 OUTCOME_BUCKETS 로만 판정한다. 결과 코드가 없으면
    FAILED 상태만 OTHER_FAILURE 로 보고, 대기/진행 중 통화는 분류하지 않는다.
    """
    code = _to_outcome(outcome)
    if code is not None:
        return OutcomeClassification(
            outcome=code,
            bucket=OUTCOME_BUCKETS[code],
            label=OUTCOME_LABELS[code],
        )
    if status == CallStatus.FAILED.value:
        return UNRECORDED_FAILURE
    return NOT_FOLLOW_UP


def follow_up_outcomes() -> tuple[CallOutcome, ...]:
    return tuple(code for code in CallOutcome if OUTCOME_BUCKETS[code] is not None)


def _to_outcome(value: CallOutcome | str | None) -> CallOutcome | None:
    if value is None or isinstance(value, CallOutcome):
        return value
    # 잘못된 코드는 저장 단계에서 막히므로 여기서는 ValueError 를 그대로 올린다.
    return CallOutcome(value)
