from __future__ import annotations

import time
from typing import Callable, List, Tuple

from .config import Action, PluginConfig, resolve_defaults
from .errors import ConfigError, PluginError
from .gcp_auth import Credentials
from .logging_utils import get_logger
from .retry import run_with_retry
from .subprocess_utils import CommandRunner
from . import (
    gcp_auth,
    helm_actions,
)


logger = get_logger(__name__)

PHASE_PREPARE = "prepare"
PHASE_EXECUTE = "execute"


def prepare(cfg: PluginConfig, runner) -> Tuple[PluginConfig, Credentials]:  # noqa: ANN001
    """
    기본값 보정 -> 서비스 계정 인증/클러스터 context -> helm client 초기화.
    """
    resolved = resolve_defaults(cfg)
    logger.debug("Config resolved: %r", resolved)
    creds = gcp_auth.provision_credentials(resolved, runner)
    helm_actions.helm_init(resolved, runner)
    return resolved, creds


def execute(cfg: PluginConfig, runner, creds: Credentials) -> None:  # noqa: ANN001
    """
    선언된 순서대로 액션을 실행하고, 첫 실패에서 멈춘다.
    """
    for action in cfg.actions:
        helm_actions.run_action(action, cfg, runner, creds)


def run_plugin(
    cfg: PluginConfig,
    runner=None,  # noqa: ANN001
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> PluginConfig:
    """
    prepare / execute 두 단계를 각각 최대 두 번까지 실행한다.

    - prepare 실패: prepare_retry_delay 초 기다린 뒤 한 번 더
    - execute 실패: 기다리지 않고 한 번 더
    두 번째 실패는 PluginError 로 감싸서 올린다. 보정된 설정을 반환한다.
    """
    if runner is None:
        runner = CommandRunner(inherit_stdio=cfg.debug)

    try:
        resolved, creds = run_with_retry(
            lambda: prepare(cfg, runner),
            phase=PHASE_PREPARE,
            delay=cfg.prepare_retry_delay,
            sleep=sleep,
        )
    except ConfigError:
        raise
    except Exception as e:  # noqa: BLE001
        raise PluginError(f"플러그인 준비 실패: {e}", phase=PHASE_PREPARE) from e

    try:
        run_with_retry(
            lambda: execute(resolved, runner, creds),
            phase=PHASE_EXECUTE,
            delay=0.0,
            sleep=sleep,
        )
    except ConfigError:
        raise
    except Exception as e:  # noqa: BLE001
        raise PluginError(f"플러그인 실행 실패: {e}", phase=PHASE_EXECUTE) from e

    logger.info("모든 액션 완료: %s", [a.value for a in resolved.actions])
    return resolved


def _describe_action(action: Action, cfg: PluginConfig) -> List[str]:
    if action is Action.CREATE:
        return [f"{cfg.helm_bin} package --version {cfg.chart_version} {cfg.chart_path}"]
    if action is Action.PUBLISH:
        return [f"{cfg.gsutil_bin} cp {cfg.artifact_file} gs://{cfg.bucket}"]
    cmds: List[str] = []
    if cfg.debug:
        cmds.append(f"{cfg.kubectl_bin} config view")
    cmds.append(" ".join(helm_actions.build_deploy_command(cfg)))
    return cmds


def plan_all(cfg: PluginConfig) -> str:
    """
    보정된 설정과 각 액션이 실행할 명령을 요약 텍스트로 리턴한다.
    실제 외부 명령은 호출하지 않는다.
    """
    resolved = resolve_defaults(cfg)

    lines: List[str] = []
    lines.append("# Deploy plan")
    lines.append(f"- project: {resolved.project or '(not set)'}")
    lines.append(f"- cluster: {resolved.cluster or '(not set)'} (zone={resolved.zone or '(not set)'})")
    lines.append("")

    lines.append("## Config summary")
    lines.append(f"- chart_path: {resolved.chart_path}")
    lines.append(f"- chart_version: {resolved.chart_version or '(not set)'}")
    lines.append(f"- package: {resolved.package}")
    lines.append(f"- release: {resolved.release}")
    lines.append(f"- namespace: {resolved.namespace}")
    lines.append(f"- bucket: {resolved.bucket or '(not set)'}")
    lines.append(f"- chart_repo: {resolved.chart_repo or '(not set)'}")
    lines.append(f"- values: {', '.join(resolved.values) or '(none)'}")
    lines.append(f"- auth_key: {'(set)' if resolved.auth_key else '(not set)'}")
    lines.append(f"- debug: {resolved.debug}")
    lines.append("")

    lines.append("## Actions")
    for idx, action in enumerate(resolved.actions, start=1):
        lines.append(f"{idx}. {action.value}")
        for c in _describe_action(action, resolved):
            lines.append(f"   $ {c}")

    return "\n".join(lines)
