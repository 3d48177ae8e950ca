"""Two-layer file encryption."""

import asyncio
import os
import pathlib
import re
import typing

import click

import gpgfy.artifact
import gpgfy.common
import gpgfy.engine
import gpgfy.exceptions
import gpgfy.types

# Validity letters in gpg key listings that mean the key shouldn't be trusted
# to represent the recipient any longer.
UNUSABLE_VALIDITY: dict[str, str] = {
    "r": "revoked",
    "e": "expired",
    "d": "disabled",
    "i": "invalid",
}

_CONTROL_CHARACTERS = re.compile(r"[\x00-\x1f\x7f]")


def asymmetric_name(path: pathlib.Path) -> pathlib.Path:
    """Get the name of the encrypted file for a plaintext file."""
    return path.with_name(path.name + gpgfy.types.ASYMMETRIC_SUFFIX)


def check_recipient(recipient: str) -> None:
    """Reject recipient identities that can't be safely given to the engine."""
    if (
        not recipient.strip()
        or recipient.startswith("-")
        or _CONTROL_CHARACTERS.search(recipient)
    ):
        raise gpgfy.exceptions.MalformedRecipient


def warn_unusable_keys(
    opts: gpgfy.types.GpgfyEncryptOptions,
    keys: list[gpgfy.types.KeyInfo],
) -> None:
    """Warn about recipient keys that are revoked, expired or can't encrypt."""
    for key in keys:
        gpgfy.common.conditional_echo_verbose(
            opts,
            f"Found key {key['key_id']} ({', '.join(key['uids'])}) for {opts['recipient']}",
        )
        if key["validity"] in UNUSABLE_VALIDITY:
            click.echo(
                f"Warning: key {key['key_id']} for {opts['recipient']} is "
                f"{UNUSABLE_VALIDITY[key['validity']]}. Continuing anyway.",
                err=True,
            )
        if "E" not in key["capabilities"]:
            click.echo(
                f"Warning: key {key['key_id']} for {opts['recipient']} "
                "has no usable encryption capability.",
                err=True,
            )


async def encrypt(
    opts: gpgfy.types.GpgfyEncryptOptions,
    session: gpgfy.types.GpgfySession,
) -> int:
    """Encrypt a file symmetrically, then for the recipient public key."""
    path: pathlib.Path = opts["path"]
    gpgfy.common.check_readable_file(path)
    check_recipient(opts["recipient"])

    output = asymmetric_name(path)
    gpgfy.common.check_writable_directory(output)
    if not gpgfy.common.confirm_overwrite(opts, output):
        click.echo(f"Not overwriting {output}, nothing was done.")
        return 0

    gpgfy.common.conditional_echo_verbose(
        opts, f"Looking up the public key for {opts['recipient']}..."
    )
    keys = await gpgfy.engine.list_keys(session, opts["recipient"])
    if not keys:
        raise gpgfy.exceptions.NoRecipientKey
    warn_unusable_keys(opts, keys)

    input_size = path.stat().st_size

    async with gpgfy.artifact.scoped_artifact(opts, path) as symfile:
        click.echo(f"[1/2] Symmetric encryption of '{path}'...")
        gpgfy.common.conditional_echo_debug(
            opts,
            f"Using {session['cipher']['cipher_algo']} with "
            f"{session['cipher']['s2k_count']} key derivation iterations.",
        )
        res = await gpgfy.engine.symmetric_encrypt(session, str(path), str(symfile))
        if res["returncode"] != 0:
            raise gpgfy.exceptions.StageFailure(
                "Symmetric encryption",
                "the passphrase entry was cancelled or mismatched, "
                "or the engine could not process the input file",
                res["stderr"],
            )
        gpgfy.artifact.check_nonempty(symfile)

        click.echo(
            f"[2/2] Asymmetric encryption of '{path}' for {opts['recipient']}..."
        )
        # An existing output is only replaced once the new one is complete
        async with gpgfy.artifact.scoped_artifact(
            opts, output, gpgfy.types.PARTIAL_SUFFIX
        ) as partial:
            res = await gpgfy.engine.public_key_encrypt(
                session, str(symfile), str(partial), opts["recipient"]
            )
            if res["returncode"] != 0:
                raise gpgfy.exceptions.StageFailure(
                    "Asymmetric encryption",
                    "the recipient key is unusable, or the engine could not "
                    "write the output file",
                    res["stderr"],
                )
            output_size = gpgfy.artifact.check_nonempty(partial)
            os.replace(partial, output)

    click.echo(f"Encrypted: {output}")
    click.echo(f"Input size:  {gpgfy.common.format_size(input_size)}")
    click.echo(f"Output size: {gpgfy.common.format_size(output_size)}")

    return 0


async def wrap_encrypt_exceptions(opts: gpgfy.types.GpgfyEncryptOptions) -> int:
    """Wrap the encrypt operation with required exception handling."""
    try:
        session = gpgfy.engine.open_session(
            gpg_binary=opts["gpg_binary"],
            homedir=opts["homedir"],
            timeout=opts["timeout"],
            cipher_algo=opts["cipher_algo"],
            digest_algo=opts["digest_algo"],
            compress_algo=opts["compress_algo"],
            s2k_count=opts["s2k_count"],
        )
    except gpgfy.exceptions.NoEngine:
        click.echo("The gpg binary could not be found.", err=True)
        click.echo("Install GnuPG or point --gpg-binary to it.", err=True)
        return 1

    gpgfy.common.cancel_on_sigterm()

    exc: typing.Any = None
    ret = 1
    try:
        ret = await encrypt(opts, session)
    except asyncio.CancelledError:
        click.echo("Received an interrupt, aborting...", err=True)
        click.echo("Temporary and incomplete files were removed.", err=True)
    except click.exceptions.Abort:
        click.echo("No answer to the overwrite question, nothing was done.", err=True)
    except gpgfy.exceptions.NoInputFile:
        click.echo(f"Could not find the input file {opts['path']}.", err=True)
    except gpgfy.exceptions.UnreadableFile:
        click.echo(f"The input file {opts['path']} is not readable.", err=True)
    except gpgfy.exceptions.UnwritableTarget:
        click.echo(
            f"Can't write the encrypted file next to {opts['path']}.", err=True
        )
    except gpgfy.exceptions.MalformedRecipient:
        click.echo(f"Invalid recipient identity {opts['recipient']!r}.", err=True)
    except gpgfy.exceptions.NoRecipientKey:
        click.echo(
            f"No public key for {opts['recipient']} was found in the keyring.",
            err=True,
        )
        click.echo("Import the recipient's public key with gpg --import.", err=True)
    except gpgfy.exceptions.StageFailure as sfex:
        gpgfy.common.echo_stage_failure(opts, sfex)
    except gpgfy.exceptions.IntegrityFailure as ifex:
        click.echo(f"Encryption produced no usable output: {ifex}.", err=True)
    except Exception as e:
        exc = e
    finally:
        # Log unhandled exceptions, but don't let them pass silently
        if exc is not None:
            gpgfy.common.echo_unhandled_exception_banner()
            raise exc

    return ret
