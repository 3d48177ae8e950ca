"""CLI utility for two-layer GPG file encryption and decryption.

Files are first encrypted symmetrically with a passphrase and the result is
then encrypted to a recipient public key. Decryption peels the layers in
reverse order. All cryptographic work is done by the external gpg binary.
"""

__name__ = "gpgfy"
__version__ = "0.1.0"
__author__ = "gpgfy Developers"
__license__ = "MIT License"
