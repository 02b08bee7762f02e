from dataclasses import replace

import pytest

from helm_deploy_kit import preflight
from helm_deploy_kit.config import Action, PluginConfig, resolve_defaults


def _cfg(**overrides) -> PluginConfig:
    params = dict(
        actions=(Action.CREATE, Action.PUBLISH, Action.DEPLOY),
        chart_path="charts/myapp",
        chart_version="1.2.3",
        bucket="my-bucket",
        auth_key='{"type": "service_account"}',
        project="p",
        cluster="c",
        zone="z",
    )
    params.update(overrides)
    return resolve_defaults(PluginConfig(**params))


def test_check_tools_reports_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(preflight.shutil, "which", lambda name: None if name == "gsutil" else f"/usr/bin/{name}")

    findings = preflight.check_tools(_cfg())

    assert (preflight.CRITICAL, "Tool: 찾을 수 없음 (gsutil)") in findings
    assert (preflight.OK, "Tool: 설치됨 (helm -> /usr/bin/helm)") in findings
    assert all("kubectl" not in msg for _, msg in findings)


def test_cluster_settings_missing_fields() -> None:
    findings = preflight.check_cluster_settings(_cfg(cluster="", zone=""))

    assert findings[0][0] == preflight.CRITICAL
    assert "CLUSTER" in findings[0][1]
    assert "ZONE" in findings[0][1]


def test_cluster_settings_non_json_key() -> None:
    findings = preflight.check_cluster_settings(_cfg(auth_key="not json"))
    assert findings[0][0] == preflight.CRITICAL


def test_chart_path_checked_only_for_create(tmp_path) -> None:
    (tmp_path / "charts" / "myapp").mkdir(parents=True)

    assert preflight.check_chart_path(_cfg(), base_dir=str(tmp_path))[0][0] == preflight.OK
    assert preflight.check_chart_path(_cfg(chart_path="charts/missing"), base_dir=str(tmp_path))[0][0] == preflight.CRITICAL
    assert preflight.check_chart_path(_cfg(actions=(Action.DEPLOY,)), base_dir=str(tmp_path)) == []


def test_action_order_warns_when_artifact_missing(tmp_path) -> None:
    cfg = _cfg(actions=(Action.PUBLISH, Action.CREATE, Action.DEPLOY))

    findings = preflight.check_action_order(cfg, base_dir=str(tmp_path))

    assert len(findings) == 1
    assert findings[0][0] == preflight.WARNING
    assert "publish" in findings[0][1]


def test_action_order_ok_when_artifact_exists(tmp_path) -> None:
    (tmp_path / "myapp-1.2.3.tgz").write_bytes(b"")

    assert preflight.check_action_order(_cfg(actions=(Action.DEPLOY,)), base_dir=str(tmp_path)) == []


class _FakeBucket:
    def __init__(self, exists: bool) -> None:
        self._exists = exists

    def exists(self) -> bool:
        return self._exists


class _FakeClient:
    def __init__(self, exists: bool) -> None:
        self._exists = exists

    def bucket(self, name: str) -> _FakeBucket:  # noqa: ARG002
        return _FakeBucket(self._exists)


def test_gcs_bucket_exists(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(preflight, "_storage_client", lambda cfg: _FakeClient(True))
    assert preflight.check_gcs_bucket(_cfg())[0][0] == preflight.OK


def test_gcs_bucket_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(preflight, "_storage_client", lambda cfg: _FakeClient(False))
    assert preflight.check_gcs_bucket(_cfg())[0][0] == preflight.CRITICAL


def test_gcs_bucket_not_configured() -> None:
    findings = preflight.check_gcs_bucket(_cfg(bucket=""))
    assert findings == [(preflight.CRITICAL, "GCS: BUCKET 이 설정되지 않았습니다")]


def test_check_all_summarizes(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    (tmp_path / "charts" / "myapp").mkdir(parents=True)
    monkeypatch.setattr(preflight.shutil, "which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr(preflight, "_storage_client", lambda cfg: _FakeClient(True))

    report, has_issues = preflight.check_all(_cfg(), base_dir=str(tmp_path), show_all=True)

    assert not has_issues
    assert "## GCS" in report
    assert "주요 이슈 없음" in report

    report, has_issues = preflight.check_all(
        replace(_cfg(), actions=(Action.DEPLOY,)), base_dir=str(tmp_path)
    )
    assert has_issues
    assert "### Warnings" in report
