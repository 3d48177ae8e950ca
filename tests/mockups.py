"""Common mockups for tests."""

import pathlib
import tempfile
import unittest
import unittest.mock

import gpgfy.engine
import gpgfy.types


class FakeEngine:
    """Engine stand-in that wraps content in readable layer markers."""

    def __init__(self):
        """."""
        self.calls = []
        self.fail_stage = ""
        self.empty_stage = ""

    def _result(self, stage, outfile, content):
        self.calls.append(stage)
        if stage == self.fail_stage:
            return {"returncode": 2, "stdout": "", "stderr": f"{stage} error"}
        pathlib.Path(outfile).write_bytes(b"" if stage == self.empty_stage else content)
        return {"returncode": 0, "stdout": "", "stderr": ""}

    async def symmetric_encrypt(self, session, infile, outfile):
        """."""
        content = pathlib.Path(infile).read_bytes()
        return self._result("symmetric", outfile, b"SYM:" + content)

    async def public_key_encrypt(self, session, infile, outfile, recipient):
        """."""
        content = pathlib.Path(infile).read_bytes()
        return self._result("asymmetric", outfile, b"ASYM:" + content)

    async def decrypt(self, session, infile, outfile, stage="Decryption"):
        """."""
        content = pathlib.Path(infile).read_bytes()
        if content.startswith(b"ASYM:"):
            return self._result("asymmetric-decrypt", outfile, content[5:])
        if content.startswith(b"SYM:"):
            return self._result("symmetric-decrypt", outfile, content[4:])
        self.calls.append("garbage")
        return {"returncode": 2, "stdout": "", "stderr": "no valid OpenPGP data"}

    async def list_keys(self, session, identity):
        """."""
        self.calls.append("list_keys")
        if identity != "alice@example.com":
            return []
        return [
            {
                "key_id": "0123456789ABCDEF",
                "validity": "u",
                "capabilities": "scESC",
                "uids": ["Alice <alice@example.com>"],
            }
        ]


class GpgfyTestBase(unittest.IsolatedAsyncioTestCase):
    """Base unit test class for gpgfy tests."""

    def setUp(self):
        """Set up relevant mocks."""
        self.tmpdir = tempfile.TemporaryDirectory()
        self.workdir = pathlib.Path(self.tmpdir.name)

        self.test_session: gpgfy.types.GpgfySession = {
            "gpg_binary": "/usr/bin/gpg",
            "homedir": "",
            "cipher": {
                "cipher_algo": "AES256",
                "digest_algo": "SHA512",
                "compress_algo": "ZLIB",
                "s2k_mode": 3,
                "s2k_digest_algo": "SHA512",
                "s2k_count": 65011712,
            },
            "timeout": None,
        }

        self.base_opts = {
            "gpg_binary": "",
            "homedir": "",
            "timeout": None,
            "debug": False,
            "verbose": False,
        }

        self.engine = FakeEngine()
        self.patch_engine = unittest.mock.patch.multiple(
            "gpgfy.engine",
            symmetric_encrypt=self.engine.symmetric_encrypt,
            public_key_encrypt=self.engine.public_key_encrypt,
            decrypt=self.engine.decrypt,
            list_keys=self.engine.list_keys,
        )

        self.mock_open_session = unittest.mock.Mock(return_value=self.test_session)
        self.patch_open_session = unittest.mock.patch(
            "gpgfy.engine.open_session", self.mock_open_session
        )

        self.patch_sigterm = unittest.mock.patch(
            "gpgfy.common.cancel_on_sigterm", unittest.mock.Mock()
        )

    def tearDown(self):
        """."""
        self.tmpdir.cleanup()

    def leftover_artifacts(self):
        """List temporary layers and partial outputs left in the working directory."""
        return [
            *self.workdir.glob(f"*{gpgfy.types.SYMMETRIC_SUFFIX}"),
            *self.workdir.glob(f"*{gpgfy.types.PARTIAL_SUFFIX}"),
        ]
