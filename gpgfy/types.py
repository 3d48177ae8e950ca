"""Common types for the gpgfy two-layer encryption tool."""

import os
import pathlib
import typing

# gpgfy constants

# Suffix of the final two-layer encrypted file. Must stay stable for the
# tool to be able to decrypt files encrypted with earlier versions.
ASYMMETRIC_SUFFIX: str = ".asymmetric.gpg"
# Suffix of the temporary symmetric layer, and of the decrypted output.
SYMMETRIC_SUFFIX: str = ".symmetric.gpg"
DECRYPTED_SUFFIX: str = ".decrypted"
# Suffix of a final output being written, renamed into place on success.
PARTIAL_SUFFIX: str = ".partial"

GPG_BINARY: str = os.environ.get("GPGFY_GPG_BINARY", "gpg")

# Symmetric layer defaults. S2K mode 3 is the iterated and salted key
# derivation, and 65011712 is the largest iteration count OpenPGP can encode.
CIPHER_ALGO: str = os.environ.get("GPGFY_CIPHER_ALGO", "AES256")
DIGEST_ALGO: str = os.environ.get("GPGFY_DIGEST_ALGO", "SHA512")
COMPRESS_ALGO: str = os.environ.get("GPGFY_COMPRESS_ALGO", "ZLIB")
S2K_MODE: int = 3
S2K_COUNT: int = int(os.environ.get("GPGFY_S2K_COUNT", 65011712))

# Engine calls block until done unless a timeout (seconds) is configured.
ENGINE_TIMEOUT: float | None = (
    float(os.environ["GPGFY_ENGINE_TIMEOUT"])
    if os.environ.get("GPGFY_ENGINE_TIMEOUT")
    else None
)

# Temporary artifacts are overwritten this many times before unlinking.
SECURE_DELETE_PASSES: int = 3

DEFAULT_CHECKSUM_FILE: str = "SHA256SUMS.asc"


class CipherConfig(typing.TypedDict):
    """Type definition for the algorithm parameters used when encrypting."""

    cipher_algo: str
    digest_algo: str
    compress_algo: str
    s2k_mode: int
    s2k_digest_algo: str
    s2k_count: int | None


class GpgfySession(typing.TypedDict):
    """Type definition for engine session variables."""

    gpg_binary: str
    homedir: str
    cipher: CipherConfig
    timeout: float | None


class GpgfyCommandBaseOptions(typing.TypedDict):
    """Type definitions for command options."""

    gpg_binary: str
    homedir: str
    timeout: float | None
    debug: bool
    verbose: bool


class GpgfyEncryptOptions(GpgfyCommandBaseOptions):
    """Additional type definitions for encrypt command options."""

    path: pathlib.Path
    recipient: str
    assume_yes: bool
    cipher_algo: str
    digest_algo: str
    compress_algo: str
    s2k_count: int | None


class GpgfyDecryptOptions(GpgfyCommandBaseOptions):
    """Additional type definitions for decrypt command options."""

    path: pathlib.Path
    assume_yes: bool


class GpgfyVerifyOptions(GpgfyCommandBaseOptions):
    """Additional type definitions for verify command options."""

    path: pathlib.Path


class GpgfyChecksumOptions(GpgfyCommandBaseOptions):
    """Additional type definitions for checksum command options."""

    checksum_file: str


class KeyInfo(typing.TypedDict):
    """Type definitions for a public key listed from the keyring."""

    # Validity is the single letter gpg uses in its colon listing,
    # e.g. "r" for revoked, "e" for expired, "f" for full.
    key_id: str
    validity: str
    capabilities: str
    uids: list[str]


class ProbeResult(typing.TypedDict):
    """Type definitions for the result of a packet structure probe."""

    valid: bool
    packets: list[str]
    recipients: list[str]


class EngineResult(typing.TypedDict):
    """Type definitions for the outcome of an external engine call."""

    returncode: int
    stdout: str
    stderr: str
