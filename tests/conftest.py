"""
Pytest configuration and shared fixtures for strixforge tests.

The shell executor is replaced at its lowest level (``_run``) so that the
dry-run and privilege handling above it stay real while no command ever
reaches the host.
"""

import pathlib
import shutil
import typing

import pytest

import strixforge.context
import strixforge.error
import strixforge.stage
import strixforge.system.shell
import strixforge.ui


class FakeShell(object):
    """Stands in for the host when commands are run."""

    def __init__(self) -> None:
        self.commands = []
        self.outputs = {}
        self.failures = {}
        self.available = set()

    def run(
            self, context: strixforge.context.Context,
            argv: typing.List[str],
            input: str = None) -> strixforge.system.shell.Result:
        context.check()

        if "sudo" == argv[0]:
            argv = argv[1:]

        self.commands.append(list(argv))
        program = argv[0]

        if program in self.failures:
            result = strixforge.system.shell.Result(
                "", self.failures[program], 1)
            raise strixforge.error.CommandError(
                f"{program}: Exited with status 1: {self.failures[program]}",
                result)

        if "cp" == program:
            shutil.copyfile(argv[-2], argv[-1])
        elif "tee" == program:
            pathlib.Path(argv[-1]).write_text(input)

        return strixforge.system.shell.Result(
            self.outputs.get(program, ""), "", 0)

    def ran(self, program: str) -> typing.List[typing.List[str]]:
        """Returns every command line which ran program."""
        return [argv for argv in self.commands if program == argv[0]]


class RecordingSink(strixforge.ui.Sink):
    """Sink which records every call and answers prompts from a script."""

    def __init__(self, answers: typing.Iterable[typing.Any] = ()) -> None:
        super().__init__()
        self.calls = []
        self._answers = list(answers)

    def stage_start(self, stage: strixforge.stage.Stage) -> None:
        self.calls.append(("stage_start", stage.identifier))

    def stage_complete(self, result: strixforge.stage.Result) -> None:
        self.calls.append(("stage_complete", result))

    def progress(self, percent: int, message: str) -> None:
        self.calls.append(("progress", percent, message))

    def log(self, level: strixforge.ui.LogLevel, message: str) -> None:
        self.calls.append(("log", level, message))

    def confirm(self, message: str, default: bool) -> bool:
        self.calls.append(("confirm", message))
        return self._answer(default)

    def select(
            self, message: str, options: typing.Sequence[str],
            default: int = 0) -> int:
        self.calls.append(("select", message))
        return self._answer(default)

    def prompt(self, message: str, default: str) -> str:
        self.calls.append(("prompt", message))
        return self._answer(default)

    def messages(
            self, level: strixforge.ui.LogLevel = None) -> typing.List[str]:
        return [
            call[2] for call in self.calls
            if "log" == call[0] and (level is None or level == call[1])]

    def percents(self) -> typing.List[int]:
        return [call[1] for call in self.calls if "progress" == call[0]]

    def _answer(self, default: typing.Any) -> typing.Any:
        return self._answers.pop(0) if self._answers else default


@pytest.fixture
def context() -> strixforge.context.Context:
    return strixforge.context.Context()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def shell(monkeypatch: pytest.MonkeyPatch) -> FakeShell:
    fake = FakeShell()
    monkeypatch.setattr(strixforge.system.shell, "_run", fake.run)
    monkeypatch.setattr(
        strixforge.system.shell, "command_exists",
        lambda name: name in fake.available)
    return fake


# =============================================================================
# Boot loader configuration trees
# =============================================================================

GRUB_DEFAULT = """\
GRUB_DEFAULT=0
GRUB_TIMEOUT=5
GRUB_CMDLINE_LINUX_DEFAULT="loglevel=3 quiet"
GRUB_CMDLINE_LINUX=""
"""

REFIND_CONF = """\
"Boot with standard options"  "root=UUID=1234 rw quiet"
"Boot to single-user mode"    "root=UUID=1234 rw single"
"""


def make_grub(root: pathlib.Path, content: str = GRUB_DEFAULT) -> pathlib.Path:
    (root / "boot" / "grub").mkdir(parents=True, exist_ok=True)
    path = root / "etc" / "default" / "grub"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def make_refind(
        root: pathlib.Path, content: str = REFIND_CONF) -> pathlib.Path:
    path = root / "boot" / "refind_linux.conf"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path
