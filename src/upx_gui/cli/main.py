"""命令行入口。"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from upx_gui.core.config import DEFAULT_CONCURRENCY, SLIDER_BEST_POSITION
from upx_gui.core.drop_target import Rect
from upx_gui.core.exceptions import InvalidConfigurationError, PackerServiceError
from upx_gui.core.log_sink import LogSink
from upx_gui.core.models import BatchRun, LogEvent, OperationMode, Severity
from upx_gui.core.progress import ProgressUpdate
from upx_gui.core.service import PackerService
from upx_gui.processing.controller import PackerController
from upx_gui.utils.logging import setup_logging
from upx_gui.utils.service_loader import SERVICE_ENV_VAR, load_service

app = typer.Typer(help="UPX 批量加壳 / 脱壳工具。")

SEVERITY_STYLES = {
    Severity.INFO: "white",
    Severity.SUCCESS: "green",
    Severity.WARNING: "yellow",
    Severity.ERROR: "red",
}

SERVICE_OPTION = typer.Option(..., "--service", envvar=SERVICE_ENV_VAR, help="加壳服务工厂，形如 package.module:factory")


class ConsoleLogView:
    """将日志事件输出到 rich 控制台。"""

    def __init__(self, console: Console) -> None:
        self._console = console

    def clear_placeholder(self) -> None:
        return

    def append(self, event: LogEvent) -> None:
        style = SEVERITY_STYLES[event.severity]
        if event.highlight:
            style = f"bold {style}"
        self._console.print(event.format_line(), style=style, markup=False, highlight=False)

    def trim(self, count: int) -> None:
        return


def _no_layout() -> dict[str, Rect]:
    # 命令行没有拖放区域
    return {}


def _build_progress_callback(progress: Progress):
    task_id: Optional[int] = None

    def callback(update: ProgressUpdate) -> None:
        nonlocal task_id
        if update.total == 0:
            return
        if task_id is None:
            task_id = progress.add_task("处理文件", total=update.total)
        progress.update(task_id, completed=update.completed)

    return callback


def _open_service(spec: str) -> PackerService:
    try:
        return load_service(spec)
    except InvalidConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_hint="--service") from exc


async def _run_batch(
    service: PackerService,
    console: Console,
    paths: List[str],
    mode: OperationMode,
    overrides: dict,
    workers: int,
) -> BatchRun:
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=console,
    )
    sink = LogSink()
    sink.attach(ConsoleLogView(progress.console))
    controller = PackerController(
        service,
        _no_layout,
        sink=sink,
        concurrency=workers,
        progress_callback=_build_progress_callback(progress),
    )
    await controller.start()
    config = replace(controller.config, **{key: value for key, value in overrides.items() if value is not None})
    controller.config = config

    with progress:
        targets = await controller.resolver.resolve_all(paths, config.include_subfolders)
        return await controller.run_batch(targets, mode)


def _execute(
    mode: OperationMode,
    paths: List[str],
    service_spec: str,
    level: Optional[int],
    best: bool,
    overwrite: Optional[bool],
    backup: Optional[bool],
    ultra_brute: Optional[bool],
    force: Optional[bool],
    recursive: Optional[bool],
    workers: int,
    verbose: bool,
) -> None:
    setup_logging(logging.DEBUG if verbose else logging.WARNING, quiet_sink=True)
    service = _open_service(service_spec)
    console = Console()

    overrides = {
        "compression_level": SLIDER_BEST_POSITION if best else level,
        "overwrite": overwrite,
        "backup": backup,
        "ultra_brute": ultra_brute,
        "force_compress": force,
        "include_subfolders": recursive,
    }
    run = asyncio.run(_run_batch(service, console, paths, mode, overrides, workers))

    if run.total == 0 or run.failed:
        raise typer.Exit(code=1)


def _command(mode: OperationMode):
    def command(  # noqa: PLR0913
        paths: List[str] = typer.Argument(..., help="可执行文件或文件夹，可指定多个"),
        service: str = SERVICE_OPTION,
        level: Optional[int] = typer.Option(None, "--level", "-l", min=1, max=10, help="压缩级别 1-9，10 表示 best"),
        best: bool = typer.Option(False, "--best", help="使用 best 级别"),
        overwrite: Optional[bool] = typer.Option(None, "--overwrite/--no-overwrite", help="覆盖原文件"),
        backup: Optional[bool] = typer.Option(None, "--backup/--no-backup", help="处理前备份为 .bak"),
        ultra_brute: Optional[bool] = typer.Option(None, "--ultra-brute/--no-ultra-brute", help="极限压缩模式"),
        force: Optional[bool] = typer.Option(None, "--force/--no-force", help="强制压缩"),
        recursive: Optional[bool] = typer.Option(None, "--recursive/--no-recursive", help="扫描子文件夹"),
        workers: int = typer.Option(DEFAULT_CONCURRENCY, "--workers", "-w", min=1, help="每组并发数量"),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="输出诊断日志"),
    ) -> None:
        _execute(mode, paths, service, level, best, overwrite, backup, ultra_brute, force, recursive, workers, verbose)

    command.__doc__ = f"批量{mode.label}。"
    return command


app.command("pack")(_command(OperationMode.COMPRESS))
app.command("unpack")(_command(OperationMode.DECOMPRESS))


@app.command("version")
def version_cli(service: str = SERVICE_OPTION) -> None:
    """显示 UPX 版本。"""

    packer = _open_service(service)
    try:
        version = asyncio.run(packer.get_version())
    except PackerServiceError as exc:
        typer.echo(f"无法获取UPX版本: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(version)


@app.command("refresh-icons")
def refresh_icons_cli(service: str = SERVICE_OPTION) -> None:
    """刷新系统图标缓存。"""

    setup_logging(logging.WARNING, quiet_sink=True)
    packer = _open_service(service)
    sink = LogSink()
    sink.attach(ConsoleLogView(Console()))
    controller = PackerController(packer, _no_layout, sink=sink)
    asyncio.run(controller.refresh_icon_cache())
    last = sink.last()
    if last is not None and last.severity is Severity.ERROR:
        raise typer.Exit(code=1)


@app.command("gui")
def gui_cli(service: str = SERVICE_OPTION) -> None:
    """启动图形界面。"""

    from upx_gui.gui.app import run_gui

    run_gui(_open_service(service))


if __name__ == "__main__":
    app()
