"""
gcp_auth
--------

서비스 계정 키로 gcloud 세션을 인증하고,
대상 GKE 클러스터의 kube context 를 준비하는 모듈.
"""

from __future__ import annotations

import atexit
import os
import tempfile
from dataclasses import dataclass
from typing import Dict, Optional

from .config import PluginConfig
from .logging_utils import get_logger
from .subprocess_utils import CommandRunner


logger = get_logger(__name__)

CREDENTIALS_ENV_VAR = "GOOGLE_APPLICATION_CREDENTIALS"


@dataclass(frozen=True)
class Credentials:
    """
    인증 단계의 결과. 이후 명령에 키 파일 위치를 명시적으로 넘기기 위해 사용한다.
    key_file 이 None 이면 인증을 건너뛴 것이다.
    """

    key_file: Optional[str] = None

    def as_env(self) -> Dict[str, str]:
        if not self.key_file:
            return {}
        return {CREDENTIALS_ENV_VAR: self.key_file}


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def write_key_file(auth_key: str) -> str:
    """
    auth key 를 소유자만 읽을 수 있는(0600) 임시 파일에 그대로 기록하고 경로를 반환한다.
    파일은 프로세스 종료 시 삭제된다.
    """
    fd, path = tempfile.mkstemp(prefix="auth-key", suffix=".json")
    atexit.register(_remove_quietly, path)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(auth_key)
    return path


def provision_credentials(cfg: PluginConfig, runner: CommandRunner) -> Credentials:
    """
    gcloud auth activate-service-account --key-file=<KEY_FILE>
    gcloud config set project <PROJECT>
    gcloud container clusters get-credentials <CLUSTER> --zone <ZONE>

    세 단계 중 하나라도 실패하면 그대로 예외를 올린다.
    부분 재시도는 하지 않는다 (재시도는 상위에서 단계 전체 단위로 수행).
    """
    if not cfg.auth_key:
        logger.warning("AUTH_KEY 가 비어 있어 서비스 계정 인증을 건너뜁니다.")
        return Credentials()

    key_file = write_key_file(cfg.auth_key)
    logger.info("서비스 계정 인증: project=%s, cluster=%s, zone=%s", cfg.project, cfg.cluster, cfg.zone)

    cmds = [
        # 인증
        [cfg.gcloud_bin, "auth", "activate-service-account", f"--key-file={key_file}"],
        # 프로젝트 설정
        [cfg.gcloud_bin, "config", "set", "project", cfg.project],
        # 클러스터 kube context
        [
            cfg.gcloud_bin,
            "container",
            "clusters",
            "get-credentials",
            cfg.cluster,
            "--zone",
            cfg.zone,
        ],
    ]
    for cmd in cmds:
        runner.run(cmd)

    return Credentials(key_file=key_file)
