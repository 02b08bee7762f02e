from __future__ import annotations

import sys

import pytest

from helm_deploy_kit.errors import CommandError
from helm_deploy_kit.subprocess_utils import CommandRunner, run_command


def test_capture_mode_returns_output() -> None:
    result = run_command([sys.executable, "-c", "print('done')"])

    assert result.returncode == 0
    assert result.stdout.strip() == "done"


def test_non_zero_exit_raises_with_stderr_detail() -> None:
    cmd = [sys.executable, "-c", "import sys; sys.stderr.write('bad chart'); sys.exit(3)"]

    with pytest.raises(CommandError) as excinfo:
        run_command(cmd)

    assert excinfo.value.returncode == 3
    assert "bad chart" in str(excinfo.value)
    assert excinfo.value.cmd == cmd


def test_inherit_stdio_mode_judges_exit_status_only() -> None:
    ok = run_command([sys.executable, "-c", "print('visible')"], inherit_stdio=True)
    assert ok.returncode == 0
    assert ok.stdout == ""

    with pytest.raises(CommandError) as excinfo:
        run_command([sys.executable, "-c", "import sys; sys.exit(2)"], inherit_stdio=True)
    assert excinfo.value.returncode == 2


def test_missing_binary_raises_command_error() -> None:
    with pytest.raises(CommandError) as excinfo:
        run_command(["definitely-not-a-real-helm-binary", "version"])

    assert "definitely-not-a-real-helm-binary" in str(excinfo.value)


def test_timeout_raises_command_error() -> None:
    with pytest.raises(CommandError):
        run_command([sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.2)


def test_extra_env_is_layered_on_process_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HELM_DEPLOY_BASE", "base")
    code = "import os; print(os.environ['HELM_DEPLOY_BASE'], os.environ['GOOGLE_APPLICATION_CREDENTIALS'])"

    result = CommandRunner().run(
        [sys.executable, "-c", code],
        env={"GOOGLE_APPLICATION_CREDENTIALS": "/tmp/key.json"},
    )

    assert result.stdout.split() == ["base", "/tmp/key.json"]


def test_runner_default_stdio_policy(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[bool] = []

    def fake_run_command(cmd, *, inherit_stdio, env, timeout):  # noqa: ANN001, ARG001
        seen.append(inherit_stdio)

    monkeypatch.setattr("helm_deploy_kit.subprocess_utils.run_command", fake_run_command)

    runner = CommandRunner(inherit_stdio=True)
    runner.run(["helm", "version"])
    runner.run(["helm", "version"], inherit_stdio=False)

    assert seen == [True, False]
