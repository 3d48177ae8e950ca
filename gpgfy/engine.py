"""Interface to the external OpenPGP engine.

Every capability gpgfy needs from gpg is exposed as a single coroutine in
this module. The rest of the package never builds gpg command lines itself,
so the engine can be replaced with mocks in tests.
"""

import asyncio
import contextlib
import os
import shutil

import gpgfy.exceptions
import gpgfy.types


def open_session(
    gpg_binary: str = "",
    homedir: str = "",
    timeout: float | None = None,
    cipher_algo: str = "",
    digest_algo: str = "",
    compress_algo: str = "",
    s2k_count: int | None = None,
) -> gpgfy.types.GpgfySession:
    """Open a new session for running the OpenPGP engine."""
    binary = shutil.which(gpg_binary if gpg_binary else gpgfy.types.GPG_BINARY)
    if binary is None:
        raise gpgfy.exceptions.NoEngine

    ret: gpgfy.types.GpgfySession = {
        "gpg_binary": binary,
        "homedir": homedir if homedir else os.environ.get("GNUPGHOME", ""),
        "cipher": {
            "cipher_algo": (
                cipher_algo if cipher_algo else gpgfy.types.CIPHER_ALGO
            ),
            "digest_algo": (
                digest_algo if digest_algo else gpgfy.types.DIGEST_ALGO
            ),
            "compress_algo": (
                compress_algo if compress_algo else gpgfy.types.COMPRESS_ALGO
            ),
            "s2k_mode": gpgfy.types.S2K_MODE,
            "s2k_digest_algo": (
                digest_algo if digest_algo else gpgfy.types.DIGEST_ALGO
            ),
            "s2k_count": s2k_count if s2k_count else gpgfy.types.S2K_COUNT,
        },
        "timeout": timeout if timeout is not None else gpgfy.types.ENGINE_TIMEOUT,
    }

    return ret


async def run_tool(
    cmd: list[str],
    stage: str,
    timeout: float | None = None,
) -> gpgfy.types.EngineResult:
    """Run an external tool and wait for it to finish.

    The process is killed if the waiting coroutine is cancelled or runs out
    of time, so no engine process is left writing into a file that is
    already being cleaned up.
    """
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout)
    except TimeoutError:
        raise gpgfy.exceptions.EngineTimeout(
            stage,
            f"the engine did not finish within {timeout} seconds",
        )
    finally:
        if proc.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()

    return {
        "returncode": proc.returncode if proc.returncode is not None else -1,
        "stdout": stdout.decode("utf-8", errors="replace"),
        "stderr": stderr.decode("utf-8", errors="replace"),
    }


def _gpg_command(session: gpgfy.types.GpgfySession, *args: str) -> list[str]:
    """Build a gpg command line with the session wide options."""
    cmd = [session["gpg_binary"]]
    if session["homedir"]:
        cmd += ["--homedir", session["homedir"]]
    cmd += ["--batch", *args]
    return cmd


async def symmetric_encrypt(
    session: gpgfy.types.GpgfySession,
    infile: str,
    outfile: str,
) -> gpgfy.types.EngineResult:
    """Encrypt a file with a passphrase asked by the engine's pinentry."""
    cipher = session["cipher"]
    return await run_tool(
        _gpg_command(
            session,
            "--yes",
            "--symmetric",
            "--cipher-algo",
            cipher["cipher_algo"],
            "--digest-algo",
            cipher["digest_algo"],
            "--compress-algo",
            cipher["compress_algo"],
            "--s2k-mode",
            str(cipher["s2k_mode"]),
            "--s2k-cipher-algo",
            cipher["cipher_algo"],
            "--s2k-digest-algo",
            cipher["s2k_digest_algo"],
            "--s2k-count",
            str(cipher["s2k_count"]),
            "--output",
            outfile,
            "--",
            infile,
        ),
        "Symmetric encryption",
        session["timeout"],
    )


async def public_key_encrypt(
    session: gpgfy.types.GpgfySession,
    infile: str,
    outfile: str,
    recipient: str,
) -> gpgfy.types.EngineResult:
    """Encrypt a file to a recipient public key."""
    cipher = session["cipher"]
    return await run_tool(
        _gpg_command(
            session,
            "--yes",
            "--encrypt",
            "--recipient",
            recipient,
            "--trust-model",
            "always",
            "--cipher-algo",
            cipher["cipher_algo"],
            "--digest-algo",
            cipher["digest_algo"],
            "--compress-algo",
            cipher["compress_algo"],
            "--output",
            outfile,
            "--",
            infile,
        ),
        "Asymmetric encryption",
        session["timeout"],
    )


async def decrypt(
    session: gpgfy.types.GpgfySession,
    infile: str,
    outfile: str,
    stage: str = "Decryption",
) -> gpgfy.types.EngineResult:
    """Decrypt a file, the engine picks private key or passphrase by itself."""
    return await run_tool(
        _gpg_command(
            session,
            "--yes",
            "--output",
            outfile,
            "--decrypt",
            "--",
            infile,
        ),
        stage,
        session["timeout"],
    )


def parse_key_listing(listing: str) -> list[gpgfy.types.KeyInfo]:
    """Parse the primary keys out of gpg's colon delimited key listing."""
    keys: list[gpgfy.types.KeyInfo] = []
    for line in listing.splitlines():
        fields = line.split(":")
        if fields[0] == "pub" and len(fields) > 11:
            keys.append(
                {
                    "key_id": fields[4],
                    "validity": fields[1],
                    "capabilities": fields[11],
                    "uids": [],
                }
            )
        elif fields[0] == "uid" and len(fields) > 9 and keys:
            keys[-1]["uids"].append(fields[9])
    return keys


async def list_keys(
    session: gpgfy.types.GpgfySession,
    identity: str,
) -> list[gpgfy.types.KeyInfo]:
    """List the public keys matching an identity, empty if none match."""
    res = await run_tool(
        _gpg_command(
            session,
            "--with-colons",
            "--list-keys",
            "--",
            identity,
        ),
        "Key lookup",
        session["timeout"],
    )
    if res["returncode"] != 0:
        return []
    return parse_key_listing(res["stdout"])


async def list_packets(
    session: gpgfy.types.GpgfySession,
    infile: str,
) -> gpgfy.types.EngineResult:
    """Dump the packet structure of a file without decrypting it."""
    return await run_tool(
        _gpg_command(
            session,
            "--list-only",
            "--list-packets",
            "--",
            infile,
        ),
        "Packet inspection",
        session["timeout"],
    )


async def verify_signature(
    session: gpgfy.types.GpgfySession,
    infile: str,
) -> gpgfy.types.EngineResult:
    """Verify the signature of a clear-signed or signed file."""
    return await run_tool(
        _gpg_command(
            session,
            "--verify",
            "--",
            infile,
        ),
        "Signature verification",
        session["timeout"],
    )
