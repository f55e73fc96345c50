"""Tests for the shell executor against real commands."""

import threading
import time

import pytest

import strixforge.error
import strixforge.system.shell


def test_query_captures_output(context):
    result = strixforge.system.shell.query(context, "echo", "hello")

    assert "hello\n" == result.stdout
    assert 0 == result.exit_code


def test_failure_carries_result(context):
    with pytest.raises(strixforge.error.CommandError) as e:
        strixforge.system.shell.execute(
            context, "sh", "-c", "echo oops >&2; exit 3")

    assert 3 == e.value.result.exit_code
    assert "oops" in e.value.result.stderr
    assert "oops" in e.value.message


def test_command_not_found(context):
    with pytest.raises(strixforge.error.CommandError) as e:
        strixforge.system.shell.execute(context, "strixforge-no-such-command")

    assert 127 == e.value.result.exit_code


def test_command_exists():
    assert strixforge.system.shell.command_exists("sh")
    assert not strixforge.system.shell.command_exists(
        "strixforge-no-such-command")


def test_dry_run_skips_mutations(context, tmp_path):
    file = tmp_path / "touched"

    result = strixforge.system.shell.execute(
        context.with_dry_run(True), "touch", str(file))

    assert 0 == result.exit_code
    assert not file.exists()


def test_mutations_run(context, tmp_path):
    file = tmp_path / "touched"

    strixforge.system.shell.execute(context, "touch", str(file))

    assert file.exists()


def test_cancelled_before_start(context, tmp_path):
    file = tmp_path / "touched"
    context.cancel()

    with pytest.raises(strixforge.error.CancelledError):
        strixforge.system.shell.execute(context, "touch", str(file))

    assert not file.exists()


def test_cancel_abandons_running_command(context):
    timer = threading.Timer(0.2, context.cancel)
    timer.start()
    start = time.monotonic()

    try:
        with pytest.raises(strixforge.error.CancelledError):
            strixforge.system.shell.query(context, "sleep", "10")
    finally:
        timer.cancel()

    assert time.monotonic() - start < 5
