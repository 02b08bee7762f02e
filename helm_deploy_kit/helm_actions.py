"""
helm_actions
------------

파이프라인 단계(create / publish / deploy)별 명령을 조립하고 실행하는 모듈.
각 단계는 설정 값만으로 인자 벡터를 만들며, 성공 여부는 종료 코드로만 판단한다.
"""

from __future__ import annotations

from typing import Callable, Dict, List

from .config import Action, PluginConfig
from .gcp_auth import Credentials
from .logging_utils import get_logger
from .subprocess_utils import CommandRunner


logger = get_logger(__name__)

ActionHandler = Callable[[PluginConfig, CommandRunner, Credentials], None]


def helm_init(cfg: PluginConfig, runner: CommandRunner) -> None:
    """
    helm init --client-only
    """
    runner.run([cfg.helm_bin, "init", "--client-only"])


def create_package(cfg: PluginConfig, runner: CommandRunner, creds: Credentials) -> None:
    """
    helm package --version <CHART_VERSION> <CHART_PATH>
    """
    logger.info("차트 패키징: %s (version=%s)", cfg.chart_path, cfg.chart_version)
    runner.run(
        [cfg.helm_bin, "package", "--version", cfg.chart_version, cfg.chart_path],
        env=creds.as_env(),
    )


def publish_package(cfg: PluginConfig, runner: CommandRunner, creds: Credentials) -> None:
    """
    gsutil cp <PACKAGE>-<CHART_VERSION>.tgz gs://<BUCKET>
    """
    logger.info("차트 업로드: %s -> gs://%s", cfg.artifact_file, cfg.bucket)
    runner.run(
        [cfg.gsutil_bin, "cp", cfg.artifact_file, f"gs://{cfg.bucket}"],
        env=creds.as_env(),
    )


def kube_config_view(cfg: PluginConfig, runner: CommandRunner, creds: Credentials) -> None:
    """
    kubectl config view (debug 진단용, 항상 stdio 를 물려준다)
    """
    runner.run([cfg.kubectl_bin, "config", "view"], env=creds.as_env(), inherit_stdio=True)


def deploy_overrides(cfg: PluginConfig) -> List[str]:
    """
    사용자 VALUES 뒤에 namespace=<NAMESPACE> 를 정확히 한 번 덧붙인 목록.
    설정 자체는 바꾸지 않으므로 재시도해도 중복되지 않는다.
    """
    return [*cfg.values, f"namespace={cfg.namespace}"]


def build_deploy_command(cfg: PluginConfig) -> List[str]:
    return [
        cfg.helm_bin,
        "upgrade",
        cfg.release,
        cfg.artifact_file,
        "--set",
        ",".join(deploy_overrides(cfg)),
        "--install",
        "--namespace",
        cfg.namespace,
    ]


def deploy_package(cfg: PluginConfig, runner: CommandRunner, creds: Credentials) -> None:
    """
    helm upgrade <RELEASE> <PACKAGE>-<CHART_VERSION>.tgz --set ... --install --namespace <NAMESPACE>

    --install 로 릴리스가 없으면 설치하므로 반복 실행해도 안전하다.
    """
    if cfg.debug:
        kube_config_view(cfg, runner, creds)

    logger.info(
        "릴리스 배포: release=%s, file=%s, namespace=%s",
        cfg.release,
        cfg.artifact_file,
        cfg.namespace,
    )
    runner.run(build_deploy_command(cfg), env=creds.as_env())


HANDLERS: Dict[Action, ActionHandler] = {
    Action.CREATE: create_package,
    Action.PUBLISH: publish_package,
    Action.DEPLOY: deploy_package,
}


def run_action(action: Action, cfg: PluginConfig, runner: CommandRunner, creds: Credentials) -> None:
    logger.info("액션 실행: %s", action.value)
    HANDLERS[action](cfg, runner, creds)
