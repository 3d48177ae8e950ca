"""Temporary artifact lifecycle."""

import contextlib
import os
import pathlib
import secrets
import time
import typing

import aiofiles

import gpgfy.common
import gpgfy.exceptions
import gpgfy.types

BLOCK_SIZE: int = 65536


def temporary_name(
    base: pathlib.Path,
    suffix: str = gpgfy.types.SYMMETRIC_SUFFIX,
) -> pathlib.Path:
    """Derive a unique temporary name next to a file.

    Concurrent invocations in the same directory get distinct names from
    the nanosecond timestamp and the random suffix.
    """
    return base.with_name(
        f"{base.name}.{time.time_ns()}.{secrets.token_hex(8)}"
        f"{suffix}"
    )


def reserve(path: pathlib.Path) -> None:
    """Create the file exclusively, readable by the owner only."""
    fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
    os.close(fd)


async def _overwrite(path: pathlib.Path, passes: int) -> None:
    """Overwrite a file in place: zeros, then ones, then random data."""
    size = path.stat().st_size
    async with aiofiles.open(path, "r+b") as f:
        for pass_num in range(passes):
            await f.seek(0)
            written = 0
            while written < size:
                chunk_size = min(BLOCK_SIZE, size - written)
                if pass_num == 0:
                    data = b"\x00" * chunk_size
                elif pass_num == 1:
                    data = b"\xff" * chunk_size
                else:
                    data = secrets.token_bytes(chunk_size)
                await f.write(data)
                written += chunk_size
            await f.flush()
            os.fsync(f.fileno())
        await f.truncate(0)


async def secure_delete(
    path: pathlib.Path,
    passes: int = gpgfy.types.SECURE_DELETE_PASSES,
) -> bool:
    """Overwrite and remove a file.

    Returns False when the overwrite was not possible and the file was
    only unlinked. A missing file is not an error.
    """
    if not path.exists():
        return True
    overwritten = True
    try:
        await _overwrite(path, passes)
    except OSError:
        overwritten = False
    path.unlink(missing_ok=True)
    return overwritten


@contextlib.asynccontextmanager
async def scoped_artifact(
    opts: gpgfy.types.GpgfyCommandBaseOptions,
    base: pathlib.Path,
    suffix: str = gpgfy.types.SYMMETRIC_SUFFIX,
) -> typing.AsyncIterator[pathlib.Path]:
    """Reserve a temporary artifact and purge it on every exit path.

    An artifact renamed away inside the block is left alone.
    """
    path = temporary_name(base, suffix)
    reserve(path)
    gpgfy.common.conditional_echo_debug(opts, f"Reserved temporary file {path}")
    try:
        yield path
    finally:
        if not await secure_delete(path):
            gpgfy.common.conditional_echo_verbose(
                opts,
                f"Secure overwrite of {path} was not possible, the file was only removed.",
            )
        gpgfy.common.conditional_echo_debug(opts, f"Removed temporary file {path}")


def check_nonempty(path: pathlib.Path) -> int:
    """Return the size of an engine output, raising if it is missing or empty."""
    if not path.is_file():
        raise gpgfy.exceptions.IntegrityFailure(f"{path} was not created")
    size = path.stat().st_size
    if size == 0:
        raise gpgfy.exceptions.IntegrityFailure(f"{path} is empty")
    return size
