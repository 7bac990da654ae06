# wallet_pass/signers/dummy.py

"""Placeholder signer for development builds."""

import logging

from .base import BaseSigner, SigningStrategy

logger = logging.getLogger(__name__)

DUMMY_SIGNATURE = b'DUMMY_SIGNATURE'


class DummySigner(BaseSigner):
    """Returns a fixed placeholder; no cryptography is involved."""

    strategy = SigningStrategy.DUMMY

    def sign(self, manifest: bytes, material=None) -> bytes:
        logger.warning("Using dummy signature - this pass will not work on real devices")
        return DUMMY_SIGNATURE
