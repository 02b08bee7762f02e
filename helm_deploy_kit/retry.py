"""
retry
-----

단계(phase) 전체를 감싸는 재시도 정책.
일시적인 실패(토큰 전파 지연, 네트워크 불안정)는 한 번의 재시도로 흡수하고,
지속적인 설정 오류는 두 번째 시도에서 그대로 드러나게 한다.
"""

from __future__ import annotations

import time
from typing import Callable, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from .errors import ConfigError
from .logging_utils import get_logger


logger = get_logger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 2


def run_with_retry(
    operation: Callable[[], T],
    *,
    phase: str,
    attempts: int = MAX_ATTEMPTS,
    delay: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    operation 을 최대 attempts 번 실행한다. 시도 사이에 delay 초 기다린다.

    Exception 만 재시도하며 ConfigError 는 제외한다. KeyboardInterrupt 등은 곧바로 올라간다.
    마지막 시도의 예외는 그대로 다시 올린다.
    """

    def _log_retry(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "%s 단계 실패 (%d/%d): %s. %.0f초 후 재시도합니다.",
            phase,
            state.attempt_number,
            attempts,
            exc,
            delay,
        )

    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(delay),
        retry=retry_if_exception_type(Exception) & retry_if_not_exception_type(ConfigError),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )
    return retrying(operation)
