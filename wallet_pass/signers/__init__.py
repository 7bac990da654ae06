# wallet_pass/signers/__init__.py

"""
Manifest Signers

This package contains the strategies that produce the detached signature
stored as the `signature` member of a .pkpass archive:
- OpenSSLSigner: external `openssl cms` subprocess (primary)
- CMSSigner: in-process CMS SignedData assembly (fallback)
- DummySigner: fixed placeholder for development builds

SignatureEngine picks between them based on the signing material.
"""

from .base import (
    BaseSigner,
    CertificateSigningMaterial,
    DummySigningMaterial,
    DUMMY_SIGNING_MATERIAL,
    SigningMaterial,
    SigningStrategy,
    load_signing_identity,
)
from .cms import CMSSigner
from .dummy import DummySigner, DUMMY_SIGNATURE
from .engine import SignatureEngine
from .openssl import OpenSSLSigner
from .verify import verify_manifest_signature, verify_pkpass_signature

__all__ = [
    'BaseSigner',
    'CertificateSigningMaterial',
    'DummySigningMaterial',
    'DUMMY_SIGNING_MATERIAL',
    'SigningMaterial',
    'SigningStrategy',
    'load_signing_identity',
    'CMSSigner',
    'DummySigner',
    'DUMMY_SIGNATURE',
    'SignatureEngine',
    'OpenSSLSigner',
    'verify_manifest_signature',
    'verify_pkpass_signature',
]
