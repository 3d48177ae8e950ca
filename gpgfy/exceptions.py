"""gpgfy exceptions."""


class PreconditionError(Exception):
    """Input validation failed before any engine call was made."""


class NoInputFile(PreconditionError):
    """The provided input file does not exist or is not a regular file."""


class UnreadableFile(PreconditionError):
    """The provided input file can't be read."""


class UnwritableTarget(PreconditionError):
    """The directory receiving the output can't be written to."""


class MalformedRecipient(PreconditionError):
    """The recipient identity can't be passed to the engine."""


class WrongSuffix(PreconditionError):
    """The file to decrypt was not produced by this tool."""


class NoRecipientKey(PreconditionError):
    """No public key for the recipient was found in the keyring."""


class NoChecksumFile(PreconditionError):
    """The checksum list to verify does not exist."""


class ExternalToolError(Exception):
    """A required external binary is missing from the execution path."""


class NoEngine(ExternalToolError):
    """The OpenPGP engine could not be found."""


class NoHashEngine(ExternalToolError):
    """Neither shasum nor sha256sum could be found."""


class StageFailure(Exception):
    """An engine call in the encryption or decryption pipeline failed."""

    def __init__(self, stage: str, causes: str, stderr: str = "") -> None:
        super().__init__(f"{stage} failed: {causes}")
        self.stage = stage
        self.causes = causes
        self.stderr = stderr


class EngineTimeout(StageFailure):
    """The engine did not finish within the configured timeout."""


class IntegrityFailure(Exception):
    """Engine reported success, but the output is missing or empty."""
