# wallet_pass/signers/base.py

"""
Base Signer

Signing material variants, the strategy names, and the abstract signer that
each strategy (external tool, in-process, dummy) extends.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, Union

from cryptography import x509
from cryptography.hazmat.primitives.serialization import pkcs12

from ..errors import SigningError

logger = logging.getLogger(__name__)


class SigningStrategy(str, Enum):
    """How a detached signature is produced."""
    EXTERNAL_TOOL = 'external_tool'
    IN_PROCESS = 'in_process'
    DUMMY = 'dummy'


@dataclass(frozen=True)
class DummySigningMaterial:
    """
    Development sentinel.

    Archives signed with it carry a placeholder signature and will not be
    accepted by Wallet.
    """


@dataclass(frozen=True)
class CertificateSigningMaterial:
    """
    Pass Type ID certificate bundle plus the chain certificate.

    Attributes:
        p12_data: password-protected PKCS#12 bundle with certificate and key
        password: bundle password
        wwdr_data: chain (Apple WWDR) certificate, PEM or DER
    """
    p12_data: bytes = field(repr=False)
    password: str = field(default='', repr=False)
    wwdr_data: bytes = field(default=b'', repr=False)

    @classmethod
    def from_files(cls, p12_path: str, password: str, wwdr_path: str) -> 'CertificateSigningMaterial':
        with open(p12_path, 'rb') as f:
            p12_data = f.read()
        with open(wwdr_path, 'rb') as f:
            wwdr_data = f.read()
        return cls(p12_data=p12_data, password=password or '', wwdr_data=wwdr_data)


SigningMaterial = Union[DummySigningMaterial, CertificateSigningMaterial]

DUMMY_SIGNING_MATERIAL = DummySigningMaterial()


def load_signing_identity(material: CertificateSigningMaterial, strategy: SigningStrategy) -> Tuple:
    """
    Extract the private key, signer certificate and chain certificate.

    Args:
        material: CertificateSigningMaterial to parse
        strategy: strategy name recorded on any SigningError

    Returns:
        (private_key, signer_certificate, chain_certificate) as cryptography objects
    """
    password = material.password.encode('utf-8') if material.password else None
    try:
        private_key, certificate, _ = pkcs12.load_key_and_certificates(material.p12_data, password)
    except ValueError as e:
        raise SigningError(strategy.value, f"Could not open certificate bundle: {e}") from e

    if certificate is None:
        raise SigningError(strategy.value, 'No certificate found in certificate bundle')
    if private_key is None:
        raise SigningError(strategy.value, 'No private key found in certificate bundle')

    try:
        chain_certificate = x509.load_pem_x509_certificate(material.wwdr_data)
    except ValueError:
        try:
            chain_certificate = x509.load_der_x509_certificate(material.wwdr_data)
        except ValueError as e:
            raise SigningError(strategy.value, f"Could not parse chain certificate: {e}") from e

    return private_key, certificate, chain_certificate


class BaseSigner(ABC):
    """
    Abstract base class for detached-signature strategies.

    A signer receives the exact manifest.json bytes and returns a DER-encoded
    detached signature, or raises SigningError.
    """

    strategy: SigningStrategy

    @abstractmethod
    def sign(self, manifest: bytes, material: SigningMaterial) -> bytes:
        """
        Produce a detached signature over manifest.

        Args:
            manifest: exact bytes of manifest.json
            material: signing material

        Returns:
            signature bytes
        """
        pass

    def get_strategy_name(self) -> str:
        return self.strategy.value
