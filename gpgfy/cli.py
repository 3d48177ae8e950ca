"""CLI for encrypting and decrypting files with two layers of GPG encryption."""

import asyncio
import pathlib
import sys

import click

import gpgfy.checksum
import gpgfy.decrypt
import gpgfy.encrypt
import gpgfy.types
import gpgfy.verify

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

EPILOG = """\b
Examples:
  gpgfy encrypt notes.txt alice@example.com
  gpgfy decrypt notes.txt.asymmetric.gpg
  gpgfy verify notes.txt.asymmetric.gpg
  gpgfy checksum -f SHA256SUMS.asc

\b
Notes:
- Requires GPG to be installed and properly configured.
- For encryption, the recipient must have a public key in your GPG keyring.
"""


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--yes", "assume_yes", is_flag=True, help="Overwrite an existing output file."
)
@click.option(
    "--cipher-algo",
    default="",
    help=f"Cipher used for both layers. (default {gpgfy.types.CIPHER_ALGO})",
)
@click.option(
    "--digest-algo",
    default="",
    help=f"Digest used for key derivation. (default {gpgfy.types.DIGEST_ALGO})",
)
@click.option(
    "--compress-algo",
    default="",
    help=f"Compression used before encryption. (default {gpgfy.types.COMPRESS_ALGO})",
)
@click.option(
    "--s2k-count",
    type=click.IntRange(1024, 65011712),
    default=None,
    help=f"Passphrase key derivation iterations. (default {gpgfy.types.S2K_COUNT})",
)
@click.option("--gpg-binary", default="", help="Path or name of the gpg binary.")
@click.option("--homedir", default="", help="GnuPG home directory to use.")
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Abort an engine call that runs longer than this many seconds.",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Print more information.",
)
@click.option("--debug", is_flag=True, help="Print debug information.")
@click.argument("input_file")
@click.argument("recipient")
def encrypt(
    input_file: str,
    recipient: str,
    assume_yes: bool,
    cipher_algo: str,
    digest_algo: str,
    compress_algo: str,
    s2k_count: int | None,
    gpg_binary: str,
    homedir: str,
    timeout: float | None,
    verbose: bool,
    debug: bool,
) -> None:
    """Encrypt a file with a passphrase, then for a recipient public key."""
    opts: gpgfy.types.GpgfyEncryptOptions = {
        "path": pathlib.Path(input_file),
        "recipient": recipient,
        "assume_yes": assume_yes,
        "cipher_algo": cipher_algo,
        "digest_algo": digest_algo,
        "compress_algo": compress_algo,
        "s2k_count": s2k_count,
        "gpg_binary": gpg_binary,
        "homedir": homedir,
        "timeout": timeout,
        "debug": debug,
        "verbose": verbose,
    }

    ret = 1
    try:
        ret = asyncio.run(gpgfy.encrypt.wrap_encrypt_exceptions(opts))
    except KeyboardInterrupt:
        ret = 1
    sys.exit(ret)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--yes", "assume_yes", is_flag=True, help="Overwrite an existing output file."
)
@click.option("--gpg-binary", default="", help="Path or name of the gpg binary.")
@click.option("--homedir", default="", help="GnuPG home directory to use.")
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Abort an engine call that runs longer than this many seconds.",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Print more information.",
)
@click.option("--debug", is_flag=True, help="Print debug information.")
@click.argument("encrypted_file")
def decrypt(
    encrypted_file: str,
    assume_yes: bool,
    gpg_binary: str,
    homedir: str,
    timeout: float | None,
    verbose: bool,
    debug: bool,
) -> None:
    """Decrypt a file encrypted by this tool."""
    opts: gpgfy.types.GpgfyDecryptOptions = {
        "path": pathlib.Path(encrypted_file),
        "assume_yes": assume_yes,
        "gpg_binary": gpg_binary,
        "homedir": homedir,
        "timeout": timeout,
        "debug": debug,
        "verbose": verbose,
    }

    ret = 1
    try:
        ret = asyncio.run(gpgfy.decrypt.wrap_decrypt_exceptions(opts))
    except KeyboardInterrupt:
        ret = 1
    sys.exit(ret)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option("--gpg-binary", default="", help="Path or name of the gpg binary.")
@click.option("--homedir", default="", help="GnuPG home directory to use.")
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Abort an engine call that runs longer than this many seconds.",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Print more information.",
)
@click.option("--debug", is_flag=True, help="Print debug information.")
@click.argument("encrypted_file")
def verify(
    encrypted_file: str,
    gpg_binary: str,
    homedir: str,
    timeout: float | None,
    verbose: bool,
    debug: bool,
) -> None:
    """Check the packet structure of an encrypted file without decrypting it."""
    opts: gpgfy.types.GpgfyVerifyOptions = {
        "path": pathlib.Path(encrypted_file),
        "gpg_binary": gpg_binary,
        "homedir": homedir,
        "timeout": timeout,
        "debug": debug,
        "verbose": verbose,
    }

    ret = 1
    try:
        ret = asyncio.run(gpgfy.verify.wrap_verify_exceptions(opts))
    except KeyboardInterrupt:
        ret = 1
    sys.exit(ret)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--file",
    "-f",
    "checksum_file",
    default="",
    help="Checksum file to verify (skips the interactive prompt).",
)
@click.option("--gpg-binary", default="", help="Path or name of the gpg binary.")
@click.option("--homedir", default="", help="GnuPG home directory to use.")
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Abort a tool call that runs longer than this many seconds.",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Print more information.",
)
@click.option("--debug", is_flag=True, help="Print debug information.")
def checksum(
    checksum_file: str,
    gpg_binary: str,
    homedir: str,
    timeout: float | None,
    verbose: bool,
    debug: bool,
) -> None:
    """Verify SHA256 checksums of the files present in the current directory.

    A checksum file ending in .asc has its GPG signature checked first.
    """
    if not checksum_file:
        checksum_file = click.prompt(
            "Enter checksum file name",
            default=gpgfy.types.DEFAULT_CHECKSUM_FILE,
            show_default=True,
        )

    opts: gpgfy.types.GpgfyChecksumOptions = {
        "checksum_file": checksum_file,
        "gpg_binary": gpg_binary,
        "homedir": homedir,
        "timeout": timeout,
        "debug": debug,
        "verbose": verbose,
    }

    ret = 1
    try:
        ret = asyncio.run(gpgfy.checksum.wrap_checksum_exceptions(opts))
    except KeyboardInterrupt:
        ret = 1
    sys.exit(ret)


@click.command(name="help", context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_help(ctx: click.Context) -> None:
    """Show this help message."""
    click.echo((ctx.parent or ctx).get_help())


@click.group(
    context_settings=CONTEXT_SETTINGS,
    invoke_without_command=True,
    epilog=EPILOG,
)
@click.pass_context
def wrap(ctx: click.Context) -> None:
    """Encrypt and decrypt files using symmetric + asymmetric GPG encryption."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)


wrap.add_command(encrypt)
wrap.add_command(decrypt)
wrap.add_command(verify)
wrap.add_command(checksum)
wrap.add_command(show_help)


def main() -> None:
    """Run the CLI, exiting with 1 on malformed commands."""
    try:
        wrap.main(prog_name="gpgfy", standalone_mode=False)
    except click.exceptions.UsageError as uex:
        click.echo(f"Invalid arguments: {uex.format_message()}", err=True)
        click.echo(uex.ctx.get_help() if uex.ctx is not None else "", err=True)
        sys.exit(1)
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    except click.exceptions.ClickException as cex:
        cex.show()
        sys.exit(1)


if __name__ == "__main__":
    main()
