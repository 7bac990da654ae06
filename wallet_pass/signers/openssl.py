# wallet_pass/signers/openssl.py

"""
OpenSSL Signer

Primary signing strategy: hands the manifest to the `openssl cms` command
and reads back a DER-encoded detached signature.

The bundle is unpacked into PEM files inside a private temporary directory
that is removed before returning. When the bundle has a password the key is
re-encrypted with it and handed to openssl through the environment, never
on the command line.
"""

import logging
import os
import subprocess
import tempfile
from typing import List

from cryptography.hazmat.primitives import serialization

from ..errors import SigningError
from ..models import MANIFEST_DIGEST_ALGORITHM
from .base import BaseSigner, CertificateSigningMaterial, SigningStrategy, load_signing_identity

logger = logging.getLogger(__name__)

DEFAULT_OPENSSL_TIMEOUT = 30.0
PASSWORD_ENV_VAR = 'WALLET_PASS_SIGNER_KEY_PASSWORD'


class OpenSSLSigner(BaseSigner):
    """
    Signs with an external `openssl` binary, bounded by a timeout.

    Args:
        binary: openssl executable name or path
        timeout: seconds before the subprocess is killed
    """

    strategy = SigningStrategy.EXTERNAL_TOOL

    def __init__(self, binary: str = 'openssl', timeout: float = DEFAULT_OPENSSL_TIMEOUT):
        self.binary = binary
        self.timeout = timeout

    def build_command(self, manifest_path: str, signature_path: str, signer_path: str,
                      key_path: str, chain_path: str, with_password: bool) -> List[str]:
        command = [
            self.binary, 'cms', '-sign',
            '-binary',
            '-md', MANIFEST_DIGEST_ALGORITHM,
            '-in', manifest_path,
            '-out', signature_path,
            '-outform', 'DER',
            '-signer', signer_path,
            '-inkey', key_path,
            '-certfile', chain_path,
        ]
        if with_password:
            command.extend(['-passin', f'env:{PASSWORD_ENV_VAR}'])
        return command

    def sign(self, manifest: bytes, material: CertificateSigningMaterial) -> bytes:
        private_key, certificate, chain_certificate = load_signing_identity(material, self.strategy)

        if material.password:
            encryption = serialization.BestAvailableEncryption(material.password.encode('utf-8'))
        else:
            encryption = serialization.NoEncryption()

        with tempfile.TemporaryDirectory(prefix='pkpass-sign-') as sign_dir:
            manifest_path = os.path.join(sign_dir, 'manifest.json')
            signature_path = os.path.join(sign_dir, 'signature')
            signer_path = os.path.join(sign_dir, 'signer.pem')
            key_path = os.path.join(sign_dir, 'key.pem')
            chain_path = os.path.join(sign_dir, 'wwdr.pem')

            files = {
                manifest_path: manifest,
                signer_path: certificate.public_bytes(serialization.Encoding.PEM),
                key_path: private_key.private_bytes(
                    encoding=serialization.Encoding.PEM,
                    format=serialization.PrivateFormat.PKCS8,
                    encryption_algorithm=encryption,
                ),
                chain_path: chain_certificate.public_bytes(serialization.Encoding.PEM),
            }
            for path, data in files.items():
                with open(path, 'wb') as f:
                    f.write(data)

            command = self.build_command(
                manifest_path, signature_path, signer_path, key_path, chain_path,
                with_password=bool(material.password),
            )
            env = dict(os.environ)
            if material.password:
                env[PASSWORD_ENV_VAR] = material.password

            try:
                result = subprocess.run(
                    command,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                    env=env,
                )
            except FileNotFoundError as e:
                raise SigningError(self.strategy.value, f"Failed to spawn {self.binary}: {e}") from e
            except subprocess.TimeoutExpired as e:
                raise SigningError(
                    self.strategy.value, f"{self.binary} did not finish within {self.timeout}s"
                ) from e

            if result.returncode != 0:
                diagnostic = (result.stderr or result.stdout or '').strip()
                raise SigningError(
                    self.strategy.value,
                    f"OpenSSL failed with code {result.returncode}: {diagnostic}",
                )

            if not os.path.exists(signature_path):
                raise SigningError(self.strategy.value, 'OpenSSL produced no signature output')

            with open(signature_path, 'rb') as f:
                signature = f.read()

        if not signature:
            raise SigningError(self.strategy.value, 'OpenSSL produced an empty signature')

        logger.debug(f"Created detached signature with {self.binary} ({len(signature)} bytes)")
        return signature
