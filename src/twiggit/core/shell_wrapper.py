"""Install the twiggit shell function into a shell config file.

The installed block is bracketed by two literal delimiter lines. Those lines
alone decide whether the wrapper is installed; the block between them is
replaced wholesale on a forced reinstall and removed on uninstall.

The wrapper is needed because a child process cannot change its parent
shell's directory: ``twiggit cd`` prints a path and the function cds there.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from twiggit.core.errors import ShellError
from twiggit.core.filesystem import FileSystem

BEGIN_DELIMITER = "### BEGIN TWIGGIT WRAPPER"
END_DELIMITER = "### END TWIGGIT WRAPPER"


class ShellType(Enum):
    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"


_CONFIG_CANDIDATES: Mapping[ShellType, tuple[str, ...]] = {
    ShellType.BASH: (".bashrc", ".bash_profile", ".profile"),
    ShellType.ZSH: (".zshrc", ".zprofile", ".profile"),
    ShellType.FISH: (".config/fish/config.fish",),
}

_POSIX_TEMPLATE = """\
{begin}
# Twiggit {shell} wrapper: lets twiggit change the current directory.
twiggit() {{
    case "$1" in
        cd)
            local target_dir
            target_dir=$(command twiggit "$@") || return $?
            [ -n "$target_dir" ] && builtin cd "$target_dir"
            ;;
        create|delete|prune)
            local arg wants_cd=0
            for arg in "$@"; do
                case "$arg" in
                    -C|--cd) wants_cd=1 ;;
                esac
            done
            if [ "$wants_cd" -eq 1 ]; then
                local target_dir
                target_dir=$(command twiggit "$@") || return $?
                [ -n "$target_dir" ] && builtin cd "$target_dir"
            else
                command twiggit "$@"
            fi
            ;;
        *)
            command twiggit "$@"
            ;;
    esac
}}
{end}"""

_FISH_TEMPLATE = """\
{begin}
# Twiggit fish wrapper: lets twiggit change the current directory.
function twiggit
    switch $argv[1]
        case cd
            set -l target_dir (command twiggit $argv); or return $status
            test -n "$target_dir"; and builtin cd $target_dir
        case create delete prune
            if contains -- -C $argv; or contains -- --cd $argv
                set -l target_dir (command twiggit $argv); or return $status
                test -n "$target_dir"; and builtin cd $target_dir
            else
                command twiggit $argv
            end
        case '*'
            command twiggit $argv
    end
end
{end}"""


@dataclass(frozen=True)
class InstallState:
    """State of the wrapper in one config file.

    installed reflects the file after the operation (or as it would be, for a
    dry run). skipped is True when an install left an existing block alone.
    """

    shell_type: ShellType
    config_file: Path
    installed: bool
    skipped: bool
    wrapper_content: str
    dry_run: bool = False


def infer_shell_type(config_file: Path) -> ShellType:
    """Guess the shell from a config file name.

    Raises:
        ShellError: If the name mentions no shell or more than one
    """
    name = config_file.name.lower()
    matches = [shell for shell in ShellType if shell.value in name]
    if len(matches) != 1:
        raise ShellError(
            f"cannot infer shell type from '{config_file}'; pass --shell explicitly",
            config_file=config_file,
        )
    return matches[0]


def parse_shell_type(value: str) -> ShellType:
    """Convert a shell name such as ``zsh`` or ``/bin/zsh`` to a ShellType.

    Raises:
        ShellError: If the shell is not supported
    """
    name = Path(value).name.lower()
    for shell in ShellType:
        if shell.value == name:
            return shell
    supported = ", ".join(shell.value for shell in ShellType)
    raise ShellError(f"unsupported shell '{value}' (supported: {supported})")


def default_config_file(shell_type: ShellType, home: Path, fs: FileSystem) -> Path:
    """First existing config file for the shell, else the conventional one."""
    candidates = [home / name for name in _CONFIG_CANDIDATES[shell_type]]
    for candidate in candidates:
        if fs.exists(candidate):
            return candidate
    return candidates[0]


def render_wrapper(shell_type: ShellType) -> str:
    """The delimited wrapper block, without a trailing newline."""
    match shell_type:
        case ShellType.BASH | ShellType.ZSH:
            template = _POSIX_TEMPLATE
        case ShellType.FISH:
            template = _FISH_TEMPLATE
    return template.format(begin=BEGIN_DELIMITER, end=END_DELIMITER, shell=shell_type.value)


def _find_block(content: str, config_file: Path) -> tuple[int, int] | None:
    """Character span of the delimited block, including the END line's newline.

    Raises:
        ShellError: If only one delimiter is present or they are out of order
    """
    lines = content.splitlines(keepends=True)
    begin_index = end_index = None
    for index, line in enumerate(lines):
        stripped = line.rstrip("\r\n")
        if stripped == BEGIN_DELIMITER and begin_index is None:
            begin_index = index
        elif stripped == END_DELIMITER and begin_index is not None:
            end_index = index
            break

    if begin_index is None and end_index is None:
        if any(line.rstrip("\r\n") == END_DELIMITER for line in lines):
            raise ShellError(
                "malformed twiggit wrapper block: END delimiter without BEGIN",
                config_file=config_file,
            )
        return None
    if end_index is None:
        raise ShellError(
            "malformed twiggit wrapper block: BEGIN delimiter without END",
            config_file=config_file,
        )

    start = sum(len(line) for line in lines[:begin_index])
    stop = sum(len(line) for line in lines[: end_index + 1])
    return start, stop


class ShellWrapperManager:
    """Idempotent install, validation and removal of the wrapper block.

    Each call reads the whole config file, computes the new content, and
    writes the whole file back.
    """

    def __init__(self, fs: FileSystem) -> None:
        self._fs = fs

    def _read(self, config_file: Path) -> str:
        if not self._fs.exists(config_file):
            return ""
        try:
            return self._fs.read_text(config_file)
        except OSError as e:
            raise ShellError(f"cannot read config file: {e}", config_file=config_file) from e

    def _write(self, config_file: Path, content: str) -> None:
        if not self._fs.is_dir(config_file.parent):
            raise ShellError(
                f"config directory does not exist: {config_file.parent}",
                config_file=config_file,
            )
        try:
            self._fs.write_text(config_file, content)
        except OSError as e:
            raise ShellError(f"cannot write config file: {e}", config_file=config_file) from e

    def install(
        self,
        config_file: Path,
        shell_type: ShellType | None = None,
        *,
        force: bool = False,
        dry_run: bool = False,
    ) -> InstallState:
        """Install the wrapper block into config_file.

        Args:
            config_file: Shell config file; created if missing
            shell_type: Shell to render for; inferred from the file name if None
            force: Replace an existing block in place
            dry_run: Compute the result without writing

        Raises:
            ShellError: On inference failure, a malformed block, or I/O failure
        """
        shell_type = shell_type if shell_type is not None else infer_shell_type(config_file)
        wrapper = render_wrapper(shell_type)
        content = self._read(config_file)
        span = _find_block(content, config_file)

        if span is not None and not force:
            return InstallState(
                shell_type=shell_type,
                config_file=config_file,
                installed=True,
                skipped=True,
                wrapper_content=wrapper,
                dry_run=dry_run,
            )

        if span is not None:
            start, stop = span
            new_content = content[:start] + wrapper + "\n" + content[stop:]
        elif not content:
            new_content = wrapper + "\n"
        else:
            separator = "\n" if content.endswith("\n") else "\n\n"
            new_content = content + separator + wrapper + "\n"

        if not dry_run:
            self._write(config_file, new_content)

        return InstallState(
            shell_type=shell_type,
            config_file=config_file,
            installed=True,
            skipped=False,
            wrapper_content=wrapper,
            dry_run=dry_run,
        )

    def validate_installation(
        self, config_file: Path, shell_type: ShellType | None = None
    ) -> InstallState:
        """Report whether config_file holds a complete wrapper block.

        A missing file is reported as not installed.

        Raises:
            ShellError: On inference failure, a malformed block, or a read failure
        """
        shell_type = shell_type if shell_type is not None else infer_shell_type(config_file)
        content = self._read(config_file)
        span = _find_block(content, config_file)
        wrapper = content[span[0] : span[1]].rstrip("\n") if span is not None else ""
        return InstallState(
            shell_type=shell_type,
            config_file=config_file,
            installed=span is not None,
            skipped=False,
            wrapper_content=wrapper,
        )

    def uninstall(
        self,
        config_file: Path,
        shell_type: ShellType | None = None,
        *,
        dry_run: bool = False,
    ) -> InstallState:
        """Remove the wrapper block and the blank line install put before it.

        Raises:
            ShellError: On inference failure, a malformed block, or I/O failure
        """
        shell_type = shell_type if shell_type is not None else infer_shell_type(config_file)
        content = self._read(config_file)
        span = _find_block(content, config_file)
        if span is None:
            return InstallState(
                shell_type=shell_type,
                config_file=config_file,
                installed=False,
                skipped=True,
                wrapper_content="",
                dry_run=dry_run,
            )

        start, stop = span
        before = content[:start]
        if before.endswith("\n\n"):
            before = before[:-1]
        removed = content[start:stop].rstrip("\n")
        if not dry_run:
            self._write(config_file, before + content[stop:])

        return InstallState(
            shell_type=shell_type,
            config_file=config_file,
            installed=False,
            skipped=False,
            wrapper_content=removed,
            dry_run=dry_run,
        )
