# entryboard/utils/datetime_utils.py
"""
레코드 타임스탬프(created/updated) 처리 유틸리티

- 스토어가 만드는 시각은 항상 UTC timezone-aware datetime입니다.
- Firestore에 쓰기 전/읽은 후 문서 전체를 재귀적으로 돌며 datetime을 UTC로 맞춥니다.
- 댓글/엔트리 ID에 들어가는 epoch 밀리초는 정수 연산으로 구해 반올림 오차가 없습니다.
"""

import logging
from datetime import datetime, date, timezone, time, timedelta
from typing import Any, Union

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


class DateTimeUtils:
    """스토어와 게이트웨이가 공유하는 시간 변환 함수 모음"""

    @staticmethod
    def now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def to_utc(value: Union[datetime, date]) -> datetime:
        """
        naive datetime은 UTC로 간주하고, date는 그날 00:00 UTC로 바꿉니다.
        다른 timezone의 datetime은 같은 시점의 UTC로 옮깁니다.
        """
        if not isinstance(value, datetime):
            return datetime.combine(value, time.min, tzinfo=timezone.utc)
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @staticmethod
    def _walk(obj: Any) -> Any:
        if isinstance(obj, (datetime, date)):
            return DateTimeUtils.to_utc(obj)
        if isinstance(obj, dict):
            return {k: DateTimeUtils._walk(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [DateTimeUtils._walk(item) for item in obj]
        return obj

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """쓰기 직전의 문서 본문. 중첩된 dict/list 안의 날짜까지 UTC로 맞춥니다."""
        return DateTimeUtils._walk(obj)

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        읽은 문서 본문. Firestore 타임스탬프(DatetimeWithNanoseconds)는 datetime 하위 클래스라
        같은 규칙으로 UTC datetime이 됩니다.
        """
        return DateTimeUtils._walk(obj)

    @staticmethod
    def to_timestamp_ms(dt: datetime) -> int:
        """
        datetime을 Unix epoch 밀리초로 변환합니다.
        댓글 ID(`<epochMillis>-<actorKey>`)와 엔트리 ID(`<promptId>T<epochMillis>`)에 쓰입니다.
        """
        if not isinstance(dt, datetime):
            logger.error(f"timestamp_ms 변환 실패: {dt!r}")
            raise ValueError(f"datetime 객체여야 합니다: {type(dt)}")
        return (DateTimeUtils.to_utc(dt) - EPOCH) // _MILLISECOND
