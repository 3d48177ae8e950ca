"""Two-layer file decryption."""

import asyncio
import os
import pathlib
import typing

import click

import gpgfy.artifact
import gpgfy.common
import gpgfy.engine
import gpgfy.exceptions
import gpgfy.types


def stripped_name(path: pathlib.Path) -> pathlib.Path:
    """Strip the encrypted file suffix, raising if the suffix is not there."""
    if not path.name.endswith(gpgfy.types.ASYMMETRIC_SUFFIX) or (
        path.name == gpgfy.types.ASYMMETRIC_SUFFIX
    ):
        raise gpgfy.exceptions.WrongSuffix
    return path.with_name(path.name[: -len(gpgfy.types.ASYMMETRIC_SUFFIX)])


def decrypted_name(path: pathlib.Path) -> pathlib.Path:
    """Get the name of the decrypted output for an encrypted file."""
    base = stripped_name(path)
    return base.with_name(base.name + gpgfy.types.DECRYPTED_SUFFIX)


async def decrypt(
    opts: gpgfy.types.GpgfyDecryptOptions,
    session: gpgfy.types.GpgfySession,
) -> int:
    """Decrypt a two-layer encrypted file."""
    path: pathlib.Path = opts["path"]
    output = decrypted_name(path)
    gpgfy.common.check_readable_file(path)
    gpgfy.common.check_writable_directory(output)
    if not gpgfy.common.confirm_overwrite(opts, output):
        click.echo(f"Not overwriting {output}, nothing was done.")
        return 0

    async with gpgfy.artifact.scoped_artifact(opts, stripped_name(path)) as symfile:
        click.echo(f"[1/2] Asymmetric decryption of '{path}'...")
        res = await gpgfy.engine.decrypt(
            session, str(path), str(symfile), "Asymmetric decryption"
        )
        if res["returncode"] != 0:
            raise gpgfy.exceptions.StageFailure(
                "Asymmetric decryption",
                "the matching private key is missing or wrong, "
                "or the encrypted file is corrupted",
                res["stderr"],
            )
        gpgfy.artifact.check_nonempty(symfile)

        click.echo("[2/2] Symmetric decryption of the intermediate layer...")
        # May hold plaintext, purged unless renamed into place
        async with gpgfy.artifact.scoped_artifact(
            opts, output, gpgfy.types.PARTIAL_SUFFIX
        ) as partial:
            res = await gpgfy.engine.decrypt(
                session, str(symfile), str(partial), "Symmetric decryption"
            )
            if res["returncode"] != 0:
                raise gpgfy.exceptions.StageFailure(
                    "Symmetric decryption",
                    "the passphrase is wrong, or the intermediate data is corrupted",
                    res["stderr"],
                )
            output_size = gpgfy.artifact.check_nonempty(partial)
            os.replace(partial, output)

    click.echo(f"Decrypted: {output}")
    click.echo(f"Output size: {gpgfy.common.format_size(output_size)}")

    return 0


async def wrap_decrypt_exceptions(opts: gpgfy.types.GpgfyDecryptOptions) -> int:
    """Wrap the decrypt operation with required exception handling."""
    try:
        session = gpgfy.engine.open_session(
            gpg_binary=opts["gpg_binary"],
            homedir=opts["homedir"],
            timeout=opts["timeout"],
        )
    except gpgfy.exceptions.NoEngine:
        click.echo("The gpg binary could not be found.", err=True)
        click.echo("Install GnuPG or point --gpg-binary to it.", err=True)
        return 1

    gpgfy.common.cancel_on_sigterm()

    exc: typing.Any = None
    ret = 1
    try:
        ret = await decrypt(opts, session)
    except asyncio.CancelledError:
        click.echo("Received an interrupt, aborting...", err=True)
        click.echo("Temporary and incomplete files were removed.", err=True)
    except click.exceptions.Abort:
        click.echo("No answer to the overwrite question, nothing was done.", err=True)
    except gpgfy.exceptions.WrongSuffix:
        click.echo(
            f"{opts['path']} was not produced by this tool "
            f"(expected a name ending in {gpgfy.types.ASYMMETRIC_SUFFIX}).",
            err=True,
        )
    except gpgfy.exceptions.NoInputFile:
        click.echo(f"Could not find the encrypted file {opts['path']}.", err=True)
    except gpgfy.exceptions.UnreadableFile:
        click.echo(f"The encrypted file {opts['path']} is not readable.", err=True)
    except gpgfy.exceptions.UnwritableTarget:
        click.echo(
            f"Can't write the decrypted file next to {opts['path']}.", err=True
        )
    except gpgfy.exceptions.StageFailure as sfex:
        gpgfy.common.echo_stage_failure(opts, sfex)
    except gpgfy.exceptions.IntegrityFailure as ifex:
        click.echo(f"Decryption produced no usable output: {ifex}.", err=True)
    except Exception as e:
        exc = e
    finally:
        if exc is not None:
            gpgfy.common.echo_unhandled_exception_banner()
            raise exc

    return ret
