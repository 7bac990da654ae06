# wallet_pass/config.py

"""
Wallet Pass Configuration

Environment-driven settings for the command line tool. A `.env` file in the
working directory is loaded on import. The library functions never read
configuration themselves; callers build signing material and pass it in.
"""

import os
from typing import List

from dotenv import load_dotenv

from .signers import DUMMY_SIGNING_MATERIAL, CertificateSigningMaterial, SigningMaterial
from .signers.openssl import DEFAULT_OPENSSL_TIMEOUT

load_dotenv()

SIGNING_MODES = ('certificate', 'dummy')


class WalletPassConfig:
    """Configuration for building and signing passes"""

    def __init__(self):
        self.signing_mode = os.getenv('WALLET_SIGNING_MODE', 'certificate').lower()
        self.p12_path = os.getenv('WALLET_CERT_P12_PATH', 'certs/pass.p12')
        self.p12_password = os.getenv('WALLET_CERT_PASSWORD', '')
        self.wwdr_path = os.getenv('WALLET_WWDR_PATH', 'certs/wwdr.pem')
        self.openssl_binary = os.getenv('WALLET_OPENSSL_BIN', 'openssl')
        self.output_dir = os.getenv('WALLET_OUTPUT_DIR', 'dist')
        self.log_level = os.getenv('WALLET_LOG_LEVEL', 'INFO').upper()

        timeout = os.getenv('WALLET_OPENSSL_TIMEOUT')
        try:
            self.openssl_timeout = float(timeout) if timeout else DEFAULT_OPENSSL_TIMEOUT
        except ValueError:
            raise ValueError(f"WALLET_OPENSSL_TIMEOUT must be a number, got {timeout!r}")

    @property
    def dev_mode(self) -> bool:
        return self.signing_mode == 'dummy'

    def validate(self) -> List[str]:
        """
        Check the configuration without raising.

        Returns:
            list of configuration issues (empty when usable)
        """
        issues = []

        if self.signing_mode not in SIGNING_MODES:
            issues.append(
                f"WALLET_SIGNING_MODE must be one of {', '.join(SIGNING_MODES)}, got {self.signing_mode!r}"
            )
            return issues

        if self.openssl_timeout <= 0:
            issues.append(f"WALLET_OPENSSL_TIMEOUT must be positive, got {self.openssl_timeout}")

        if self.signing_mode == 'certificate':
            for name, path in [
                ('Certificate bundle', self.p12_path),
                ('WWDR Certificate', self.wwdr_path),
            ]:
                if not os.path.exists(path):
                    issues.append(f"{name} not found at {path}")

        return issues

    def load_signing_material(self) -> SigningMaterial:
        """
        Build the signing material described by this configuration.

        Raises:
            ValueError: if the configuration is incomplete
        """
        issues = self.validate()
        if issues:
            raise ValueError(f"Apple Wallet configuration errors: {'; '.join(issues)}")

        if self.dev_mode:
            return DUMMY_SIGNING_MATERIAL

        return CertificateSigningMaterial.from_files(self.p12_path, self.p12_password, self.wwdr_path)
