"""
pytest 설정:

로컬 작업 환경에 설치된 다른 버전의 helm_deploy_kit 패키지가 존재할 때,
`pytest` 실행 시 site-packages 쪽이 먼저 import 되어 테스트가 깨질 수 있다.

테스트는 항상 현재 레포의 소스를 대상으로 해야 하므로, repo root 를 sys.path 최상단에 고정한다.
"""

from __future__ import annotations

import os
import sys
from typing import Callable, List, Mapping, Optional, Sequence

import pytest


def pytest_configure() -> None:
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


class FakeRunner:
    """
    외부 명령을 실행하지 않고 인자 벡터만 기록하는 runner.

    fail_when(predicate, times) 로 조건에 맞는 명령을 지정 횟수만큼 실패시킬 수 있다.
    """

    def __init__(self) -> None:
        self.calls: List[dict] = []
        self._failures: List[list] = []

    @property
    def commands(self) -> List[List[str]]:
        return [c["cmd"] for c in self.calls]

    def fail_when(self, predicate: Callable[[List[str]], bool], times: int = 1) -> None:
        self._failures.append([predicate, times])

    def run(
        self,
        cmd: Sequence[str],
        *,
        env: Optional[Mapping[str, str]] = None,
        inherit_stdio: Optional[bool] = None,
    ):
        from helm_deploy_kit.errors import CommandError
        from helm_deploy_kit.subprocess_utils import RunResult

        cmd = list(cmd)
        self.calls.append({"cmd": cmd, "env": dict(env or {}), "inherit_stdio": inherit_stdio})
        for failure in self._failures:
            predicate, remaining = failure
            if remaining > 0 and predicate(cmd):
                failure[1] -= 1
                raise CommandError(f"fake failure: {' '.join(cmd)}", cmd=cmd, returncode=1)
        return RunResult(returncode=0, stdout="", stderr="")


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def clean_plugin_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """테스트 호스트의 PLUGIN_* / 설정 환경변수가 섞이지 않도록 지운다."""
    names = [
        "DEBUG", "SHOW_ENV", "ACTIONS", "AUTH_KEY", "ZONE", "CLUSTER", "PROJECT",
        "NAMESPACE", "CHART_REPO", "BUCKET", "CHART_PATH", "CHART_VERSION",
        "PACKAGE", "RELEASE", "VALUES", "GCLOUD_BIN", "GSUTIL_BIN", "KUBECTL_BIN",
        "HELM_BIN", "RETRY_DELAY", "ENV_FILE",
    ]
    for name in names:
        for key in (name, "PLUGIN_" + name):
            # setenv 후 delenv 해야 테스트 중 새로 생긴 값도 undo 시 지워진다.
            monkeypatch.setenv(key, "")
            monkeypatch.delenv(key)
    return monkeypatch
