"""
errors
------

플러그인 전역에서 사용하는 예외 타입.
"""

from __future__ import annotations

from typing import Optional, Sequence


class PluginError(RuntimeError):
    """플러그인 실행 실패. dispatcher 가 올릴 때는 실패한 단계(phase)를 함께 담는다."""

    def __init__(self, message: str, *, phase: Optional[str] = None) -> None:
        super().__init__(message)
        self.phase = phase


class ConfigError(PluginError, ValueError):
    """설정 오류. 재시도해도 결과가 같으므로 재시도 대상이 아니다."""


class CommandError(PluginError):
    """외부 명령(gcloud/gsutil/kubectl/helm) 실행 실패."""

    def __init__(
        self,
        message: str,
        *,
        cmd: Sequence[str],
        returncode: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.cmd = list(cmd)
        self.returncode = returncode
