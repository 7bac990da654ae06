# wallet_pass/signers/engine.py

"""
Signature Engine

Chooses how the manifest is signed. The choice follows from the kind of
signing material the caller built, never from inspecting certificate bytes:

- DummySigningMaterial: placeholder signature, no cryptography.
- CertificateSigningMaterial: external openssl first, in-process CMS on any
  failure; a SigningError is raised only when every strategy has failed.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from ..errors import SigningError
from .base import BaseSigner, CertificateSigningMaterial, DummySigningMaterial, SigningMaterial
from .cms import CMSSigner
from .dummy import DummySigner
from .openssl import DEFAULT_OPENSSL_TIMEOUT, OpenSSLSigner

logger = logging.getLogger(__name__)


class SignatureEngine:
    """
    Runs the signing strategies in order until one succeeds.

    Args:
        strategies: ordered signers tried for certificate material
        dummy_signer: signer used for the development sentinel
    """

    def __init__(self, strategies: Optional[Sequence[BaseSigner]] = None,
                 dummy_signer: Optional[BaseSigner] = None):
        self.strategies = list(strategies) if strategies is not None else [OpenSSLSigner(), CMSSigner()]
        self.dummy_signer = dummy_signer or DummySigner()

    @classmethod
    def from_config(cls, config) -> 'SignatureEngine':
        """Build an engine using the openssl binary and timeout from a WalletPassConfig."""
        return cls(strategies=[
            OpenSSLSigner(
                binary=getattr(config, 'openssl_binary', 'openssl'),
                timeout=getattr(config, 'openssl_timeout', DEFAULT_OPENSSL_TIMEOUT),
            ),
            CMSSigner(),
        ])

    def sign(self, manifest: bytes, material: SigningMaterial) -> bytes:
        """Sign the manifest and return only the signature bytes."""
        signature, _ = self.sign_manifest(manifest, material)
        return signature

    def sign_manifest(self, manifest: bytes, material: SigningMaterial) -> Tuple[bytes, str]:
        """
        Sign the exact manifest.json bytes.

        Args:
            manifest: manifest.json bytes as written to the workspace
            material: DummySigningMaterial or CertificateSigningMaterial

        Returns:
            (detached signature bytes, name of the strategy that produced it)
        """
        if isinstance(material, DummySigningMaterial):
            return self.dummy_signer.sign(manifest, material), self.dummy_signer.get_strategy_name()

        if not isinstance(material, CertificateSigningMaterial):
            raise SigningError('engine', f"Unsupported signing material: {type(material).__name__}")

        if not self.strategies:
            raise SigningError('engine', 'No signing strategies configured')

        attempts: List[Tuple[str, str]] = []
        for signer in self.strategies:
            name = signer.get_strategy_name()
            try:
                signature = signer.sign(manifest, material)
            except SigningError as e:
                attempts.append((name, e.message))
            except OSError as e:
                attempts.append((name, f"I/O error: {e}"))
            except Exception as e:
                attempts.append((name, f"Unexpected error: {e}"))
            else:
                logger.info(f"Signed manifest using {name} strategy")
                return signature, name

            logger.warning(f"{name} signing failed: {attempts[-1][1]}")

        final_strategy, final_message = attempts[-1]
        logger.error(f"All signing strategies failed: {attempts}")
        raise SigningError(final_strategy, final_message, attempts)
