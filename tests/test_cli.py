"""命令行入口。"""

from __future__ import annotations

from typer.testing import CliRunner

from upx_gui.cli.main import app

runner = CliRunner()


def test_pack_succeeds_with_fake_service() -> None:
    result = runner.invoke(app, ["pack", "a.exe", "b.dll", "--service", "conftest:FakePackerService", "--workers", "2"])

    assert result.exit_code == 0, result.output
    assert "批量处理完成! 成功: 2 个，失败: 0 个" in result.output


def test_unpack_reports_failures_with_exit_code() -> None:
    result = runner.invoke(
        app,
        ["unpack", "broken.exe", "fine.exe"],
        env={"UPX_GUI_SERVICE": "conftest:failing_service"},
    )

    assert result.exit_code == 1
    assert "失败: 1 个" in result.output


def test_no_matching_files_exits_with_error() -> None:
    result = runner.invoke(app, ["pack", "readme.txt", "--service", "conftest:FakePackerService"])

    assert result.exit_code == 1
    assert "没有找到可处理的文件" in result.output


def test_invalid_service_spec_is_rejected() -> None:
    result = runner.invoke(app, ["version", "--service", "not-a-spec"])

    assert result.exit_code != 0


def test_version_command() -> None:
    result = runner.invoke(app, ["version", "--service", "conftest:FakePackerService"])

    assert result.exit_code == 0
    assert "upx 4.2.4" in result.output
