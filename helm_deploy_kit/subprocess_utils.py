from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from textwrap import shorten
from typing import Mapping, Optional, Sequence

from .errors import CommandError
from .logging_utils import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class RunResult:
    returncode: int
    stdout: str
    stderr: str


def _merge_env(env: Mapping[str, str] | None) -> dict[str, str] | None:
    # 추가 env 만 넘겨받으므로 현재 프로세스 환경 위에 덮어쓴다.
    if not env:
        return None
    merged = dict(os.environ)
    merged.update(env)
    return merged


def run_command(
    cmd: Sequence[str],
    *,
    inherit_stdio: bool = False,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> RunResult:
    """
    외부 명령 실행 공통 유틸.

    - inherit_stdio=False: stdout/stderr 캡처, 실패 시 요약을 에러 메시지에 포함
    - inherit_stdio=True : 현재 프로세스의 stdout/stderr 를 그대로 물려준다(debug 용)

    성공 여부는 종료 코드로만 판단하며, 출력 내용은 해석하지 않는다.
    """
    logger.debug("명령 실행: %s", list(cmd))
    full_env = _merge_env(env)

    if inherit_stdio:
        try:
            proc = subprocess.run(  # noqa: S603
                list(cmd),
                cwd=cwd,
                env=full_env,
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise CommandError(
                f"필요한 명령을 찾을 수 없습니다: {cmd[0]} "
                "(gcloud/gsutil/kubectl/helm 이 설치되어 있는지 확인하세요)",
                cmd=cmd,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise CommandError(
                f"명령 실행이 {timeout}초 안에 끝나지 않았습니다: {' '.join(cmd)}",
                cmd=cmd,
            ) from e

        if proc.returncode != 0:
            raise CommandError(
                f"명령 실행 실패: {' '.join(cmd)} (exit={proc.returncode})",
                cmd=cmd,
                returncode=proc.returncode,
            )
        return RunResult(returncode=proc.returncode, stdout="", stderr="")

    # capture 모드 (조용히 돌리고 실패 시 요약)
    try:
        result = subprocess.run(  # noqa: S603
            list(cmd),
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
            env=full_env,
        )
        if result.stdout:
            logger.debug("명령 stdout: %s", shorten(result.stdout.strip(), width=2000))
        if result.stderr:
            logger.debug("명령 stderr: %s", shorten(result.stderr.strip(), width=2000))
        return RunResult(returncode=result.returncode, stdout=result.stdout or "", stderr=result.stderr or "")
    except FileNotFoundError as e:
        raise CommandError(
            f"필요한 명령을 찾을 수 없습니다: {cmd[0]} "
            "(gcloud/gsutil/kubectl/helm 이 설치되어 있는지 확인하세요)",
            cmd=cmd,
        ) from e
    except subprocess.TimeoutExpired as e:
        raise CommandError(
            f"명령 실행이 {timeout}초 안에 끝나지 않았습니다: {' '.join(cmd)}",
            cmd=cmd,
        ) from e
    except subprocess.CalledProcessError as e:
        stdout = (e.stdout or "").strip()
        stderr = (e.stderr or "").strip()
        detail = ""
        if stderr:
            detail = "\nstderr:\n" + shorten(stderr, width=2000)
        elif stdout:
            detail = "\nstdout:\n" + shorten(stdout, width=2000)
        raise CommandError(
            f"명령 실행 실패: {' '.join(cmd)} (exit={e.returncode}){detail}",
            cmd=cmd,
            returncode=e.returncode,
        ) from e


class CommandRunner:
    """
    run_command 를 감싼 얇은 실행기.

    stdio 정책(debug 여부)과 timeout 을 한 번만 정해 두고,
    각 단계는 인자 벡터만 넘긴다. 테스트에서는 가짜 runner 로 교체한다.
    """

    def __init__(self, *, inherit_stdio: bool = False, timeout: Optional[float] = None) -> None:
        self.inherit_stdio = inherit_stdio
        self.timeout = timeout

    def run(
        self,
        cmd: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        inherit_stdio: bool | None = None,
    ) -> RunResult:
        return run_command(
            cmd,
            inherit_stdio=self.inherit_stdio if inherit_stdio is None else inherit_stdio,
            env=env,
            timeout=self.timeout,
        )
