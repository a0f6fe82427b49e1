"""Tests for the init and config commands."""

from pathlib import Path

from click.testing import CliRunner

from tests.fakes.filesystem import FakeFileSystem
from tests.fakes.git import FakeGitClient
from twiggit.cli.cli import cli
from twiggit.core.context import TwiggitContext
from twiggit.core.shell_wrapper import BEGIN_DELIMITER, ShellType, render_wrapper

HOME = Path("/test/home")


def _ctx(fs: FakeFileSystem, config_path: Path | None = None) -> TwiggitContext:
    return TwiggitContext.for_test(
        git=FakeGitClient(), fs=fs, cwd=HOME, home=HOME, config_path=config_path
    )


def test_init_installs_into_explicit_file() -> None:
    fs = FakeFileSystem(files={HOME / ".zshrc": "export EDITOR=vim\n"})

    result = CliRunner().invoke(cli, ["init", str(HOME / ".zshrc")], obj=_ctx(fs))

    assert result.exit_code == 0, result.output
    assert "Installed the zsh wrapper" in result.stderr
    assert fs.files[HOME / ".zshrc"].endswith(render_wrapper(ShellType.ZSH) + "\n")


def test_init_detects_shell_from_environment() -> None:
    fs = FakeFileSystem(directories={HOME})

    result = CliRunner(env={"SHELL": "/bin/bash"}).invoke(cli, ["init"], obj=_ctx(fs))

    assert result.exit_code == 0, result.output
    assert BEGIN_DELIMITER in fs.files[HOME / ".bashrc"]


def test_init_twice_is_skipped() -> None:
    fs = FakeFileSystem(directories={HOME})
    runner = CliRunner()
    runner.invoke(cli, ["init", str(HOME / ".bashrc")], obj=_ctx(fs))

    result = runner.invoke(cli, ["init", str(HOME / ".bashrc")], obj=_ctx(fs))

    assert result.exit_code == 0, result.output
    assert "already installed" in result.stderr
    assert fs.write_count == 1


def test_init_dry_run_shows_wrapper() -> None:
    fs = FakeFileSystem(directories={HOME})

    result = CliRunner().invoke(
        cli, ["init", str(HOME / ".bashrc"), "--dry-run"], obj=_ctx(fs)
    )

    assert result.exit_code == 0, result.output
    assert BEGIN_DELIMITER in result.stderr
    assert fs.write_count == 0


def test_init_check_reports_status() -> None:
    fs = FakeFileSystem(directories={HOME})
    runner = CliRunner()

    missing = runner.invoke(cli, ["init", str(HOME / ".bashrc"), "--check"], obj=_ctx(fs))
    runner.invoke(cli, ["init", str(HOME / ".bashrc")], obj=_ctx(fs))
    present = runner.invoke(cli, ["init", str(HOME / ".bashrc"), "--check"], obj=_ctx(fs))

    assert missing.exit_code == 1
    assert "not installed" in missing.stderr
    assert present.exit_code == 0


def test_init_uninstall() -> None:
    original = "alias g=git\n"
    fs = FakeFileSystem(files={HOME / ".bashrc": original})
    runner = CliRunner()
    runner.invoke(cli, ["init", str(HOME / ".bashrc")], obj=_ctx(fs))

    result = runner.invoke(cli, ["init", str(HOME / ".bashrc"), "--uninstall"], obj=_ctx(fs))

    assert result.exit_code == 0, result.output
    assert fs.files[HOME / ".bashrc"] == original


def test_init_unrecognized_file_needs_shell() -> None:
    fs = FakeFileSystem(directories={HOME})

    result = CliRunner().invoke(cli, ["init", str(HOME / ".profile")], obj=_ctx(fs))

    assert result.exit_code == 1
    assert "--shell" in result.stderr

    with_shell = CliRunner().invoke(
        cli, ["init", str(HOME / ".profile"), "--shell", "zsh"], obj=_ctx(fs)
    )

    assert with_shell.exit_code == 0, with_shell.output


def test_config_show_prints_effective_values() -> None:
    result = CliRunner().invoke(cli, ["config", "show"], obj=_ctx(FakeFileSystem()))

    assert result.exit_code == 0, result.output
    assert "projects_dir = /test/Projects" in result.stdout
    assert "worktrees_dir = /test/Workspaces" in result.stdout
    assert "default_source_branch = main" in result.stdout


def test_config_set_writes_file(tmp_path: Path) -> None:
    config_path = tmp_path / "twiggit" / "config.toml"

    result = CliRunner().invoke(
        cli,
        ["config", "set", "default_source_branch", "develop"],
        obj=_ctx(FakeFileSystem(), config_path=config_path),
    )

    assert result.exit_code == 0, result.output
    assert 'default_source_branch = "develop"' in config_path.read_text(encoding="utf-8")


def test_config_set_rejects_relative_directory(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"

    result = CliRunner().invoke(
        cli,
        ["config", "set", "projects_dir", "relative"],
        obj=_ctx(FakeFileSystem(), config_path=config_path),
    )

    assert result.exit_code == 1
    assert "absolute" in result.stderr
    assert not config_path.exists()
