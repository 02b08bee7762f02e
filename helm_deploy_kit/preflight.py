"""
preflight
---------

실제 배포 없이 현재 설정과 실행 환경을 점검하는 모듈.
외부 도구 설치 여부, 차트 경로, GCS 버킷, 액션 순서 등을 확인한다.
"""

from __future__ import annotations

import json
import os
import shutil
from typing import List, Tuple

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage
from google.oauth2 import service_account

from .config import Action, PluginConfig, resolve_defaults
from .logging_utils import get_logger


logger = get_logger(__name__)

OK = "ok"
WARNING = "warning"
CRITICAL = "critical"

Finding = Tuple[str, str]


def _required_tools(cfg: PluginConfig) -> List[str]:
    tools = [cfg.helm_bin]
    if cfg.auth_key:
        tools.append(cfg.gcloud_bin)
    if Action.PUBLISH in cfg.actions:
        tools.append(cfg.gsutil_bin)
    if Action.DEPLOY in cfg.actions and cfg.debug:
        tools.append(cfg.kubectl_bin)
    return tools


def check_tools(cfg: PluginConfig) -> List[Finding]:
    results: List[Finding] = []
    for tool in _required_tools(cfg):
        path = shutil.which(tool)
        if path:
            results.append((OK, f"Tool: 설치됨 ({tool} -> {path})"))
        else:
            results.append((CRITICAL, f"Tool: 찾을 수 없음 ({tool})"))
    return results


def check_cluster_settings(cfg: PluginConfig) -> List[Finding]:
    if not cfg.auth_key:
        return [(WARNING, "Cluster: AUTH_KEY 가 없어 인증을 건너뜁니다 (기존 gcloud 세션 사용)")]

    missing = [
        name
        for name, value in (("PROJECT", cfg.project), ("CLUSTER", cfg.cluster), ("ZONE", cfg.zone))
        if not value
    ]
    if missing:
        return [(CRITICAL, "Cluster: 설정되지 않았습니다: " + ", ".join(missing))]

    try:
        json.loads(cfg.auth_key)
    except ValueError:
        return [(CRITICAL, "Cluster: AUTH_KEY 가 JSON 형식이 아닙니다")]
    return [(OK, f"Cluster: {cfg.project}/{cfg.zone}/{cfg.cluster}")]


def check_chart_path(cfg: PluginConfig, base_dir: str = ".") -> List[Finding]:
    if Action.CREATE not in cfg.actions:
        return []
    path = os.path.join(base_dir, cfg.chart_path)
    if not os.path.isdir(path):
        return [(CRITICAL, f"Chart: 디렉토리 없음 ({cfg.chart_path})")]
    if not cfg.chart_version:
        return [(CRITICAL, "Chart: CHART_VERSION 이 설정되지 않았습니다")]
    return [(OK, f"Chart: 존재함 ({cfg.chart_path}, version={cfg.chart_version})")]


def check_action_order(cfg: PluginConfig, base_dir: str = ".") -> List[Finding]:
    """
    publish/deploy 는 create 가 만든 패키지 파일을 사용한다.
    앞에 create 가 없고 파일도 없으면 실행 시점에야 외부 도구가 실패하므로 미리 알린다.
    """
    results: List[Finding] = []
    created = False
    artifact_exists = os.path.exists(os.path.join(base_dir, cfg.artifact_file))
    for action in cfg.actions:
        if action is Action.CREATE:
            created = True
            continue
        if not created and not artifact_exists:
            results.append(
                (
                    WARNING,
                    f"Actions: {action.value} 앞에 create 가 없고 "
                    f"{cfg.artifact_file} 파일도 없습니다",
                )
            )
    return results


def _storage_client(cfg: PluginConfig) -> storage.Client:
    if cfg.auth_key:
        creds = service_account.Credentials.from_service_account_info(json.loads(cfg.auth_key))
        return storage.Client(project=cfg.project or creds.project_id, credentials=creds)
    return storage.Client(project=cfg.project or None)


def check_gcs_bucket(cfg: PluginConfig) -> List[Finding]:
    """
    GCS 버킷 존재 여부를 확인만 하고, 생성하지 않는다.
    """
    if Action.PUBLISH not in cfg.actions:
        return []

    if not cfg.bucket:
        return [(CRITICAL, "GCS: BUCKET 이 설정되지 않았습니다")]

    try:
        client = _storage_client(cfg)
        exists = client.bucket(cfg.bucket).exists()
    except (GoogleAPIError, GoogleAuthError, ValueError) as e:
        logger.debug("GCS 버킷 조회 실패", exc_info=True)
        return [(CRITICAL, f"GCS: 버킷 상태 확인 불가 ({cfg.bucket}): {e}")]

    if exists:
        return [(OK, f"GCS: 버킷 존재함 ({cfg.bucket})")]
    return [(CRITICAL, f"GCS: 버킷 없음 ({cfg.bucket})")]


def check_all(cfg: PluginConfig, base_dir: str = ".", show_all: bool = False) -> tuple[str, bool]:
    """
    실제 배포 없이 설정과 실행 환경을 종합적으로 점검한다.

    Returns:
        summary: 사람이 읽기 좋은 텍스트 요약
        has_issues: 크리티컬 이슈 또는 경고가 있는지 여부
    """
    resolved = resolve_defaults(cfg)

    sections = [
        ("Tools", lambda: check_tools(resolved)),
        ("Cluster", lambda: check_cluster_settings(resolved)),
        ("Chart", lambda: check_chart_path(resolved, base_dir)),
        ("Actions", lambda: check_action_order(resolved, base_dir)),
        ("GCS", lambda: check_gcs_bucket(resolved)),
    ]

    lines: List[str] = []
    critical: List[str] = []
    warnings: List[str] = []

    lines.append("# Deploy pre-check")
    lines.append(f"- actions: {', '.join(a.value for a in resolved.actions)}")
    lines.append(f"- release: {resolved.release} (namespace={resolved.namespace})")
    lines.append("")

    for title, fn in sections:
        findings = fn()
        if show_all:
            lines.append(f"## {title}")
            if not findings:
                lines.append("- (해당 없음)")
        for level, msg in findings:
            if show_all:
                lines.append(f"- [{level.upper()}] {msg}")
            if level == CRITICAL:
                critical.append(msg)
            elif level == WARNING:
                warnings.append(msg)
        if show_all:
            lines.append("")

    lines.append("## Summary")
    if critical:
        lines.append("- 상태: 크리티컬 이슈가 있습니다. 배포 전 반드시 해결해야 합니다.")
    elif warnings:
        lines.append("- 상태: 경고만 있습니다.")
    else:
        lines.append("- 상태: 주요 이슈 없음 (배포 가능 상태로 보입니다)")

    if critical:
        lines.append("")
        lines.append("### Critical issues")
        for i in critical:
            lines.append(f"- {i}")

    if warnings:
        lines.append("")
        lines.append("### Warnings")
        for i in warnings:
            lines.append(f"- {i}")

    if not show_all:
        lines.append("")
        lines.append("자세한 상태를 보려면 `helm-deploy check -a` 를 실행하세요.")

    return "\n".join(lines), bool(critical or warnings)
