from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigError


# Drone 플러그인 규약: PLUGIN_<NAME> 을 먼저 보고, 없으면 <NAME> 을 본다.
ENV_PREFIX = "PLUGIN_"
ENV_FILE_VAR = "PLUGIN_ENV_FILE"

DEFAULT_NAMESPACE = "default"
DEFAULT_PREPARE_RETRY_DELAY = 10.0
CHART_REPO_URL_TEMPLATE = "https://{bucket}.storage.googleapis.com/"


class Action(str, Enum):
    CREATE = "create"
    PUBLISH = "publish"
    DEPLOY = "deploy"

    @classmethod
    def parse(cls, raw: str) -> "Action":
        name = raw.strip().lower()
        # 이전 버전 플러그인의 액션 이름
        if name == "push":
            return cls.PUBLISH
        try:
            return cls(name)
        except ValueError:
            allowed = ", ".join(a.value for a in cls)
            raise ConfigError(
                f"알 수 없는 액션입니다: {raw!r} (허용되는 액션: {allowed})"
            ) from None


def load_env_file(path: Optional[str] = None) -> None:
    """
    PLUGIN_ENV_FILE 로 지정된 dotenv 파일이 있으면 먼저 로드한다.
    이미 설정된 환경변수는 덮어쓰지 않는다.
    """
    path = path or os.getenv(ENV_FILE_VAR)
    if path and os.path.exists(path):
        load_dotenv(path, override=False)


def _getenv(name: str) -> Optional[str]:
    val = os.getenv(ENV_PREFIX + name)
    if val is None:
        val = os.getenv(name)
    return val


def _get_str(name: str, default: str = "") -> str:
    val = _getenv(name)
    if val is None:
        return default
    return val.strip()


def _get_bool(name: str, default: bool = False) -> bool:
    raw = _getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_list(name: str) -> List[str]:
    raw = _getenv(name)
    if not raw:
        return []
    return [p.strip() for p in raw.split(",") if p.strip()]


def _last_segment(path: str) -> str:
    return path.rstrip("/").split("/")[-1]


@dataclass(frozen=True)
class PluginConfig:
    actions: Tuple[Action, ...]
    chart_path: str

    debug: bool = False
    show_env: bool = False

    # 클러스터 / 인증
    auth_key: str = ""
    zone: str = ""
    cluster: str = ""
    project: str = ""
    namespace: str = ""

    # 차트 / 저장소
    chart_repo: str = ""
    bucket: str = ""
    chart_version: str = ""
    package: str = ""
    release: str = ""
    values: Tuple[str, ...] = ()

    # 외부 도구 경로 (기본은 PATH 탐색)
    gcloud_bin: str = "gcloud"
    gsutil_bin: str = "gsutil"
    kubectl_bin: str = "kubectl"
    helm_bin: str = "helm"

    prepare_retry_delay: float = DEFAULT_PREPARE_RETRY_DELAY

    def __post_init__(self) -> None:
        if not self.actions:
            raise ConfigError("ACTIONS 에 최소 하나의 액션이 필요합니다.")
        for a in self.actions:
            if not isinstance(a, Action):
                raise ConfigError(f"알 수 없는 액션입니다: {a!r}")
        if not self.package and not _last_segment(self.chart_path):
            raise ConfigError(
                f"CHART_PATH 에서 패키지 이름을 알 수 없습니다: {self.chart_path!r} (PACKAGE 를 지정하세요)"
            )

    def __repr__(self) -> str:
        # auth_key 는 로그에 남기지 않는다.
        masked = "***" if self.auth_key else ""
        return (
            f"PluginConfig(actions={[a.value for a in self.actions]}, "
            f"chart_path={self.chart_path!r}, chart_version={self.chart_version!r}, "
            f"package={self.package!r}, release={self.release!r}, "
            f"project={self.project!r}, cluster={self.cluster!r}, zone={self.zone!r}, "
            f"namespace={self.namespace!r}, bucket={self.bucket!r}, "
            f"chart_repo={self.chart_repo!r}, values={list(self.values)}, "
            f"debug={self.debug}, auth_key={masked!r})"
        )

    @property
    def artifact_file(self) -> str:
        """helm package 가 만드는 파일 이름: <package>-<chart_version>.tgz"""
        return f"{self.package}-{self.chart_version}.tgz"

    @classmethod
    def from_env(cls) -> "PluginConfig":
        missing: List[str] = []

        def req(name: str) -> str:
            val = _get_str(name)
            if not val:
                missing.append(name)
            return val

        raw_actions = _get_list("ACTIONS")
        if not raw_actions:
            missing.append("ACTIONS")
        chart_path = req("CHART_PATH")

        if missing:
            raise ConfigError(
                "필수 환경변수가 누락되었습니다: " + ", ".join(sorted(set(missing)))
            )

        actions = tuple(Action.parse(a) for a in raw_actions)

        raw_delay = _get_str("RETRY_DELAY")
        try:
            delay = float(raw_delay) if raw_delay else DEFAULT_PREPARE_RETRY_DELAY
        except ValueError:
            raise ConfigError(
                f"RETRY_DELAY 는 숫자여야 합니다: {raw_delay!r}"
            ) from None

        # auth key 는 JSON 원문이므로 strip 하지 않는다.
        return cls(
            actions=actions,
            chart_path=chart_path,
            debug=_get_bool("DEBUG"),
            show_env=_get_bool("SHOW_ENV"),
            auth_key=_getenv("AUTH_KEY") or "",
            zone=_get_str("ZONE"),
            cluster=_get_str("CLUSTER"),
            project=_get_str("PROJECT"),
            namespace=_get_str("NAMESPACE"),
            chart_repo=_get_str("CHART_REPO"),
            bucket=_get_str("BUCKET"),
            chart_version=_get_str("CHART_VERSION"),
            package=_get_str("PACKAGE"),
            release=_get_str("RELEASE"),
            values=tuple(_get_list("VALUES")),
            gcloud_bin=_get_str("GCLOUD_BIN", "gcloud"),
            gsutil_bin=_get_str("GSUTIL_BIN", "gsutil"),
            kubectl_bin=_get_str("KUBECTL_BIN", "kubectl"),
            helm_bin=_get_str("HELM_BIN", "helm"),
            prepare_retry_delay=delay,
        )


def resolve_defaults(cfg: PluginConfig) -> PluginConfig:
    """
    다른 필드로부터 유도되는 기본값을 채운 새 설정을 반환한다.

    적용 순서가 의미가 있다:
    1. package  <- chart_path 의 마지막 경로 조각 (끝의 "/" 는 무시)
    2. release  <- package
    3. chart_repo <- bucket 기반 GCS URL
    4. namespace <- "default"
    """
    package = cfg.package
    if not package:
        package = _last_segment(cfg.chart_path)

    release = cfg.release or package

    chart_repo = cfg.chart_repo
    if not chart_repo and cfg.bucket:
        chart_repo = CHART_REPO_URL_TEMPLATE.format(bucket=cfg.bucket)

    namespace = cfg.namespace or DEFAULT_NAMESPACE

    return replace(
        cfg,
        package=package,
        release=release,
        chart_repo=chart_repo,
        namespace=namespace,
    )
