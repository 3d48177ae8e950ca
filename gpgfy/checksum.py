"""SHA256 checksum list verification."""

import asyncio
import pathlib
import shutil
import typing

import click

import gpgfy.common
import gpgfy.engine
import gpgfy.exceptions
import gpgfy.types

SEPARATOR: str = "━" * 40


def hash_command() -> list[str]:
    """Get the command line prefix of the available SHA256 check tool."""
    if shasum := shutil.which("shasum"):
        return [shasum, "-a", "256"]
    if sha256sum := shutil.which("sha256sum"):
        return [sha256sum]
    raise gpgfy.exceptions.NoHashEngine


async def check_signature(
    opts: gpgfy.types.GpgfyChecksumOptions,
    path: pathlib.Path,
) -> bool:
    """Verify the signature of a checksum list, only warning on failure."""
    click.echo("Verifying GPG signature...")
    try:
        session = gpgfy.engine.open_session(
            gpg_binary=opts["gpg_binary"],
            homedir=opts["homedir"],
            timeout=opts["timeout"],
        )
    except gpgfy.exceptions.NoEngine:
        click.echo("Warning: gpg is not available, skipping signature check.", err=True)
        return False

    res = await gpgfy.engine.verify_signature(session, str(path))
    if res["stderr"]:
        click.echo(res["stderr"].rstrip())
    click.echo(SEPARATOR)
    if res["returncode"] == 0:
        click.echo("GPG signature verified!")
        click.echo(SEPARATOR)
        return True
    click.echo("Warning: GPG signature verification failed or key not found!", err=True)
    click.echo("Continuing with checksum verification...")
    click.echo(SEPARATOR)
    return False


async def checksum(opts: gpgfy.types.GpgfyChecksumOptions) -> int:
    """Verify the files listed in a checksum list that exist locally."""
    path = pathlib.Path(opts["checksum_file"])
    if not path.is_file():
        raise gpgfy.exceptions.NoChecksumFile
    cmd = hash_command()

    click.echo(f"Verifying checksums from: {path}")
    click.echo(SEPARATOR)

    if path.name.endswith(".asc"):
        await check_signature(opts, path)

    click.echo("Verifying SHA256 checksums...")
    gpgfy.common.conditional_echo_debug(opts, f"Using {' '.join(cmd)}")
    res = await gpgfy.engine.run_tool(
        [*cmd, "--check", "--ignore-missing", str(path)],
        "Checksum verification",
        opts["timeout"],
    )
    for line in (res["stdout"] + res["stderr"]).splitlines():
        if "WARNING" not in line and line.strip():
            click.echo(line)
    click.echo(SEPARATOR)

    if res["returncode"] != 0:
        click.echo("Checksum verification failed!", err=True)
        return 1
    click.echo("All checksums verified successfully!")
    return 0


async def wrap_checksum_exceptions(opts: gpgfy.types.GpgfyChecksumOptions) -> int:
    """Wrap the checksum operation with required exception handling."""
    exc: typing.Any = None
    ret = 1
    try:
        ret = await checksum(opts)
    except asyncio.CancelledError:
        click.echo("Received an interrupt, aborting...", err=True)
    except gpgfy.exceptions.NoChecksumFile:
        click.echo(
            f"Error: Checksum file '{opts['checksum_file']}' not found!", err=True
        )
    except gpgfy.exceptions.NoHashEngine:
        click.echo("Neither shasum nor sha256sum could be found.", err=True)
    except gpgfy.exceptions.StageFailure as sfex:
        gpgfy.common.echo_stage_failure(opts, sfex)
    except Exception as e:
        exc = e
    finally:
        if exc is not None:
            gpgfy.common.echo_unhandled_exception_banner()
            raise exc

    return ret
