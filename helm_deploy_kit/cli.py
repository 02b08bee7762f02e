import os
import sys

import click

from .config import PluginConfig, load_env_file
from .errors import ConfigError, PluginError
from .logging_utils import setup_logging, get_logger
from .orchestrator import plan_all, run_plugin
from .preflight import check_all


logger = get_logger(__name__)


@click.group()
@click.option(
    "-C",
    "--chdir",
    "chdir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=".",
    help="작업 디렉토리 (기본: 현재 디렉토리). helm package 결과물도 여기에 생성됩니다.",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="로그 레벨을 DEBUG로 올립니다. (PLUGIN_DEBUG=true 와 동일)",
)
@click.pass_context
def main(ctx: click.Context, chdir: str, verbose: int) -> None:
    """GKE Helm 차트 패키징 / GCS 업로드 / 배포용 파이프라인 플러그인"""
    setup_logging(verbose)
    if chdir != ".":
        os.chdir(chdir)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _load_config_from_ctx(ctx: click.Context) -> PluginConfig:
    load_env_file()
    cfg = PluginConfig.from_env()
    if cfg.debug:
        setup_logging(ctx.obj["verbose"], debug=True)
    logger.debug("Config loaded: %r", cfg)
    return cfg


def _load_or_exit(ctx: click.Context) -> PluginConfig:
    try:
        return _load_config_from_ctx(ctx)
    except ConfigError as e:
        click.echo(f"[ERROR] 설정 로드 실패: {e}", err=True)
        sys.exit(1)


def _print_env_names() -> None:
    # 값에는 secret 이 있을 수 있으므로 이름만 출력한다.
    for name in sorted(os.environ):
        click.echo(name)


@main.command(name="run")
@click.pass_context
def run(ctx: click.Context) -> None:
    """ACTIONS 에 선언된 단계(create/publish/deploy)를 순서대로 실행"""
    cfg = _load_or_exit(ctx)

    if cfg.show_env:
        _print_env_names()

    try:
        run_plugin(cfg)
    except PluginError as e:
        logger.exception("플러그인 실패 (phase=%s)", e.phase or "config")
        click.echo(f"[ERROR] {e}", err=True)
        sys.exit(1)


@main.command()
@click.pass_context
def plan(ctx: click.Context) -> None:
    """보정된 설정과 각 액션이 실행할 명령을 출력 (외부 명령은 실행하지 않음)"""
    cfg = _load_or_exit(ctx)
    click.echo(plan_all(cfg))


@main.command()
@click.option(
    "-a",
    "--all",
    "show_all",
    is_flag=True,
    help="모든 체크 항목의 상세 상태를 출력합니다. (기본은 이슈만 요약)",
)
@click.pass_context
def check(ctx: click.Context, show_all: bool) -> None:
    """
    배포 전에 도구 설치 여부, 차트 경로, GCS 버킷, 액션 순서를 점검한다.
    (실제 리소스 생성/변경은 하지 않는다)
    """
    cfg = _load_or_exit(ctx)

    report, has_issues = check_all(cfg, base_dir=".", show_all=show_all)
    click.echo(report)

    # 이슈가 있으면 exit 1 로 종료하여 CI 등에서 감지 가능하게 한다.
    if has_issues:
        sys.exit(1)


def plugin_entrypoint() -> None:
    """인자 없이 호출되는 CI 플러그인 엔트리포인트 (`helm-deploy run` 과 동일)."""
    main(args=["run"], prog_name="helm-deploy")
