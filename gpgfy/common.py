"""Common miscellaneous functions for gpgfy."""

import asyncio
import contextlib
import os
import pathlib
import signal

import click

import gpgfy.exceptions
import gpgfy.types


def conditional_echo_verbose(
    opts: gpgfy.types.GpgfyCommandBaseOptions, message: str
) -> None:
    """Echo verbose messages if verbose level is configured."""
    if opts["verbose"] or opts["debug"]:
        click.echo(message)


def conditional_echo_debug(
    opts: gpgfy.types.GpgfyCommandBaseOptions, message: str
) -> None:
    """Echo debug messages if debug level is configured."""
    if opts["debug"]:
        click.echo(message)


def format_size(size: int) -> str:
    """Format a byte count for humans, keeping the exact count visible."""
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024 or unit == "GiB":
            break
        value /= 1024
    if unit == "B":
        return f"{size} B"
    return f"{value:.1f} {unit} ({size} bytes)"


def check_readable_file(path: pathlib.Path) -> None:
    """Make sure an input file exists and can be read."""
    if not path.is_file():
        raise gpgfy.exceptions.NoInputFile
    if not os.access(path, os.R_OK):
        raise gpgfy.exceptions.UnreadableFile


def check_writable_directory(path: pathlib.Path) -> None:
    """Make sure the directory an output is written to accepts new files."""
    directory = path.parent
    if not os.access(directory, os.W_OK | os.X_OK):
        raise gpgfy.exceptions.UnwritableTarget


def confirm_overwrite(
    opts: gpgfy.types.GpgfyEncryptOptions | gpgfy.types.GpgfyDecryptOptions,
    target: pathlib.Path,
) -> bool:
    """Ask whether an existing output may be replaced."""
    if not target.exists():
        return True
    if opts["assume_yes"]:
        conditional_echo_verbose(opts, f"Overwriting existing file {target}")
        return True
    confirm = click.prompt(
        f"Output file {target} already exists. Do you want to overwrite it?",
        default="n",
        type=click.Choice(choices=["y", "n"], case_sensitive=False),
        show_default=True,
        show_choices=True,
    )
    return confirm.lower() == "y"


def echo_unhandled_exception_banner() -> None:
    """Print the support request banner before re-raising an exception."""
    click.echo("Program encountered an unhandled exception.", err=True)
    click.echo(
        "If you think there's a mistake, copy this message and lines after it, and include it in your bug report for diagnostic purposes.",
        err=True,
    )
    click.echo(
        "If possible, include instructions on how to replicate the issue (what you did in order to make this happen)",
        err=True,
    )
    click.echo("Exception details:", err=True)
    click.echo(
        "-------------------------- BEGIN EXCEPTION TRACEBACK --------------------------"
    )


def echo_stage_failure(
    opts: gpgfy.types.GpgfyCommandBaseOptions,
    exc: gpgfy.exceptions.StageFailure,
) -> None:
    """Report a failed engine call together with its known candidate causes."""
    click.echo(f"{exc.stage} failed.", err=True)
    click.echo(f"Possible causes: {exc.causes}.", err=True)
    if exc.stderr:
        conditional_echo_verbose(opts, "Engine output:")
        conditional_echo_verbose(opts, exc.stderr.rstrip())


def cancel_on_sigterm() -> None:
    """Turn SIGTERM into cancellation of the running task.

    Cancellation unwinds through the same cleanup paths as a keyboard
    interrupt does under asyncio.run.
    """
    task = asyncio.current_task()
    if task is None:
        return
    with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
        asyncio.get_running_loop().add_signal_handler(signal.SIGTERM, task.cancel)
