"""Test CLI functions."""

import pathlib
import unittest
import unittest.mock

import click.testing

import gpgfy.cli


class TestCliFunctions(unittest.TestCase):
    """Test class for CLI functions."""

    def setUp(self):
        """Set up relevant mocks."""
        self.mock_asyncio_run = unittest.mock.Mock(return_value=0)
        self.patch_run = unittest.mock.patch(
            "gpgfy.cli.asyncio.run", self.mock_asyncio_run
        )

        self.mock_sys_exit = unittest.mock.Mock()
        self.patch_exit = unittest.mock.patch("gpgfy.cli.sys.exit", self.mock_sys_exit)

        self.mock_encrypt = unittest.mock.Mock(return_value=0)
        self.patch_encrypt = unittest.mock.patch(
            "gpgfy.cli.gpgfy.encrypt.wrap_encrypt_exceptions",
            self.mock_encrypt,
        )
        self.mock_decrypt = unittest.mock.Mock(return_value=0)
        self.patch_decrypt = unittest.mock.patch(
            "gpgfy.cli.gpgfy.decrypt.wrap_decrypt_exceptions",
            self.mock_decrypt,
        )
        self.mock_verify = unittest.mock.Mock(return_value=0)
        self.patch_verify = unittest.mock.patch(
            "gpgfy.cli.gpgfy.verify.wrap_verify_exceptions",
            self.mock_verify,
        )
        self.mock_checksum = unittest.mock.Mock(return_value=0)
        self.patch_checksum = unittest.mock.patch(
            "gpgfy.cli.gpgfy.checksum.wrap_checksum_exceptions",
            self.mock_checksum,
        )

        self.runner = click.testing.CliRunner()

    def test_cli_encrypt_correct_parameters(self):
        """Test that CLI encrypt command calls encrypt with correct parameters."""
        with self.patch_encrypt, self.patch_exit, self.patch_run:
            self.runner.invoke(
                gpgfy.cli.encrypt,
                [
                    "--yes",
                    "--cipher-algo",
                    "CAMELLIA256",
                    "--s2k-count",
                    "1048576",
                    "--gpg-binary",
                    "gpg2",
                    "--homedir",
                    "/tmp/gnupg",
                    "--timeout",
                    "30",
                    "--verbose",
                    "notes.txt",
                    "alice@example.com",
                ],
            )

        self.mock_encrypt.assert_called_once_with(
            {
                "path": pathlib.Path("notes.txt"),
                "recipient": "alice@example.com",
                "assume_yes": True,
                "cipher_algo": "CAMELLIA256",
                "digest_algo": "",
                "compress_algo": "",
                "s2k_count": 1048576,
                "gpg_binary": "gpg2",
                "homedir": "/tmp/gnupg",
                "timeout": 30.0,
                "debug": False,
                "verbose": True,
            }
        )
        self.mock_asyncio_run.assert_called_once_with(0)
        self.mock_sys_exit.assert_any_call(0)

    def test_cli_encrypt_rejects_low_s2k_count(self):
        """Test that a weak iteration count is refused by the CLI."""
        with self.patch_encrypt, self.patch_run:
            result = self.runner.invoke(
                gpgfy.cli.encrypt,
                ["--s2k-count", "10", "notes.txt", "alice@example.com"],
            )

        self.assertEqual(result.exit_code, 2)
        self.mock_encrypt.assert_not_called()

    def test_cli_decrypt_correct_parameters(self):
        """Test that CLI decrypt command calls decrypt with correct parameters."""
        with self.patch_decrypt, self.patch_exit, self.patch_run:
            self.runner.invoke(
                gpgfy.cli.decrypt,
                ["--debug", "notes.txt.asymmetric.gpg"],
            )

        self.mock_decrypt.assert_called_once_with(
            {
                "path": pathlib.Path("notes.txt.asymmetric.gpg"),
                "assume_yes": False,
                "gpg_binary": "",
                "homedir": "",
                "timeout": None,
                "debug": True,
                "verbose": False,
            }
        )
        self.mock_sys_exit.assert_any_call(0)

    def test_cli_verify_correct_parameters(self):
        """Test that CLI verify command calls verify with correct parameters."""
        self.mock_asyncio_run.return_value = 1
        with self.patch_verify, self.patch_exit, self.patch_run:
            self.runner.invoke(gpgfy.cli.verify, ["corrupted.asymmetric.gpg"])

        self.mock_verify.assert_called_once_with(
            {
                "path": pathlib.Path("corrupted.asymmetric.gpg"),
                "gpg_binary": "",
                "homedir": "",
                "timeout": None,
                "debug": False,
                "verbose": False,
            }
        )
        self.mock_sys_exit.assert_any_call(1)

    def test_cli_checksum_with_file(self):
        """Test that CLI checksum uses the given file without prompting."""
        with self.patch_checksum, self.patch_exit, self.patch_run:
            self.runner.invoke(gpgfy.cli.checksum, ["-f", "SHA256SUMS.txt"])

        self.assertEqual(
            self.mock_checksum.call_args.args[0]["checksum_file"], "SHA256SUMS.txt"
        )

    def test_cli_checksum_prompt_default(self):
        """Test that CLI checksum prompts with the default file name."""
        with self.patch_checksum, self.patch_exit, self.patch_run:
            result = self.runner.invoke(gpgfy.cli.checksum, [], input="\n")

        self.assertIn("SHA256SUMS.asc", result.output)
        self.assertEqual(
            self.mock_checksum.call_args.args[0]["checksum_file"], "SHA256SUMS.asc"
        )

    def test_cli_keyboard_interrupt_exits_1(self):
        """Test that an interrupt exits with a failure status."""
        self.mock_asyncio_run.side_effect = KeyboardInterrupt
        with self.patch_encrypt, self.patch_exit, self.patch_run:
            self.runner.invoke(
                gpgfy.cli.encrypt, ["notes.txt", "alice@example.com"]
            )

        self.assertEqual(self.mock_sys_exit.call_args_list[0], unittest.mock.call(1))

    def test_cli_group_help(self):
        """Test that the group prints usage for help requests and no arguments."""
        for args in ([], ["help"], ["--help"], ["-h"]):
            result = self.runner.invoke(gpgfy.cli.wrap, args)
            self.assertEqual(result.exit_code, 0)
            self.assertIn("encrypt", result.output)
            self.assertIn("gpgfy decrypt notes.txt.asymmetric.gpg", result.output)


class TestCliMain(unittest.TestCase):
    """Test exit statuses of the CLI entry point."""

    def run_main(self, *args):
        """Run main with the given arguments, returning the exit status."""
        with unittest.mock.patch("sys.argv", ["gpgfy", *args]):
            try:
                gpgfy.cli.main()
            except SystemExit as e:
                return e.code
        return 0

    def test_main_help_exits_0(self):
        """Test that help requests exit with 0."""
        for args in ([], ["help"], ["--help"], ["-h"]):
            self.assertEqual(self.run_main(*args), 0)

    def test_main_unknown_command_exits_1(self):
        """Test that an unknown command exits with 1."""
        self.assertEqual(self.run_main("shred", "notes.txt"), 1)

    def test_main_missing_argument_exits_1(self):
        """Test that a malformed command exits with 1."""
        self.assertEqual(self.run_main("encrypt", "notes.txt"), 1)
        self.assertEqual(self.run_main("decrypt"), 1)
