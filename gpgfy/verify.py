"""Packet structure probe for encrypted files."""

import asyncio
import pathlib
import re
import typing

import click

import gpgfy.common
import gpgfy.engine
import gpgfy.exceptions
import gpgfy.types

_PUBKEY_PACKET = re.compile(r"^:pubkey enc packet:.*keyid (?P<keyid>[0-9A-Fa-f]+)")
_DATA_PACKETS = (
    ":encrypted data packet:",
    ":aead encrypted packet:",
)


def parse_packet_dump(dump: str) -> gpgfy.types.ProbeResult:
    """Check a packet dump for the packets a two-layer file starts with."""
    packets: list[str] = []
    recipients: list[str] = []
    for line in dump.splitlines():
        if not line.startswith(":"):
            continue
        packets.append(line.split(":")[1])
        if match := _PUBKEY_PACKET.match(line):
            recipients.append(match.group("keyid"))

    has_data = any(line.startswith(_DATA_PACKETS) for line in dump.splitlines())
    return {
        "valid": bool(recipients) and has_data,
        "packets": packets,
        "recipients": recipients,
    }


async def probe(
    opts: gpgfy.types.GpgfyVerifyOptions,
    session: gpgfy.types.GpgfySession,
) -> gpgfy.types.ProbeResult:
    """Inspect the packet structure of an encrypted file without decrypting."""
    path: pathlib.Path = opts["path"]
    gpgfy.common.check_readable_file(path)

    res = await gpgfy.engine.list_packets(session, str(path))
    gpgfy.common.conditional_echo_debug(opts, res["stdout"].rstrip())
    if res["returncode"] != 0:
        gpgfy.common.conditional_echo_verbose(opts, res["stderr"].rstrip())
        return {
            "valid": False,
            "packets": [],
            "recipients": [],
        }
    return parse_packet_dump(res["stdout"])


async def verify(
    opts: gpgfy.types.GpgfyVerifyOptions,
    session: gpgfy.types.GpgfySession,
) -> int:
    """Report whether a file looks like a well-formed encrypted file."""
    result = await probe(opts, session)
    if not result["valid"]:
        click.echo(
            f"{opts['path']} is not a well-formed encrypted file, it may be corrupted.",
            err=True,
        )
        return 1

    for keyid in result["recipients"]:
        gpgfy.common.conditional_echo_verbose(opts, f"Encrypted for key {keyid}")
    click.echo(f"{opts['path']} has a valid OpenPGP packet structure.")
    click.echo("Decryption still requires the right private key and passphrase.")
    return 0


async def wrap_verify_exceptions(opts: gpgfy.types.GpgfyVerifyOptions) -> int:
    """Wrap the verify operation with required exception handling."""
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

    exc: typing.Any = None
    ret = 1
    try:
        ret = await verify(opts, session)
    except asyncio.CancelledError:
        click.echo("Received an interrupt, aborting...", err=True)
    except gpgfy.exceptions.NoInputFile:
        click.echo(f"Could not find the file {opts['path']}.", err=True)
    except gpgfy.exceptions.UnreadableFile:
        click.echo(f"The file {opts['path']} is not readable.", err=True)
    except gpgfy.exceptions.StageFailure as sfex:
        gpgfy.common.echo_stage_failure(opts, sfex)
    except Exception as e:
        exc = e
    finally:
        if exc is not None:
            gpgfy.common.echo_unhandled_exception_banner()
            raise exc

    return ret
