# wallet_pass/signers/cms.py

"""
In-Process CMS Signer

Fallback signing strategy. Assembles the PKCS#7/CMS SignedData structure
directly: a SHA-1 content digest, signed attributes (content type, signing
time, message digest), the signer certificate plus the chain certificate,
and no encapsulated content.
"""

import hashlib
import logging
from datetime import datetime, timezone

from asn1crypto import algos, cms, core
from asn1crypto import x509 as asn1_x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa

from ..errors import SigningError
from ..models import MANIFEST_DIGEST_ALGORITHM
from .base import BaseSigner, CertificateSigningMaterial, SigningStrategy, load_signing_identity

logger = logging.getLogger(__name__)


def _signed_attributes(manifest_digest: bytes, signing_time: datetime) -> cms.CMSAttributes:
    attributes = [
        cms.CMSAttribute({
            'type': 'content_type',
            'values': ['data'],
        }),
        cms.CMSAttribute({
            'type': 'signing_time',
            'values': [cms.Time({'utc_time': core.UTCTime(signing_time)})],
        }),
        cms.CMSAttribute({
            'type': 'message_digest',
            'values': [manifest_digest],
        }),
    ]
    # DER requires SET OF members in ascending order of their encodings;
    # verifiers re-encode the set before checking the signature.
    return cms.CMSAttributes(sorted(attributes, key=lambda attr: attr.dump()))


class CMSSigner(BaseSigner):
    """Builds the detached signature without any external tool."""

    strategy = SigningStrategy.IN_PROCESS

    def __init__(self, clock=None):
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def sign(self, manifest: bytes, material: CertificateSigningMaterial) -> bytes:
        private_key, certificate, chain_certificate = load_signing_identity(material, self.strategy)

        try:
            signer_cert = asn1_x509.Certificate.load(certificate.public_bytes(serialization.Encoding.DER))
            chain_cert = asn1_x509.Certificate.load(chain_certificate.public_bytes(serialization.Encoding.DER))

            digest = hashlib.new(MANIFEST_DIGEST_ALGORITHM, manifest).digest()
            signed_attrs = _signed_attributes(digest, self.clock())
            to_be_signed = signed_attrs.dump()

            if isinstance(private_key, rsa.RSAPrivateKey):
                signature = private_key.sign(to_be_signed, padding.PKCS1v15(), hashes.SHA1())
                signature_algorithm = 'rsassa_pkcs1v15'
            elif isinstance(private_key, ec.EllipticCurvePrivateKey):
                signature = private_key.sign(to_be_signed, ec.ECDSA(hashes.SHA1()))
                signature_algorithm = 'sha1_ecdsa'
            else:
                raise SigningError(
                    self.strategy.value,
                    f"Unsupported private key type: {type(private_key).__name__}",
                )

            digest_algorithm = algos.DigestAlgorithm({'algorithm': MANIFEST_DIGEST_ALGORITHM})

            signer_info = cms.SignerInfo({
                'version': 'v1',
                'sid': cms.SignerIdentifier({
                    'issuer_and_serial_number': cms.IssuerAndSerialNumber({
                        'issuer': signer_cert.issuer,
                        'serial_number': signer_cert.serial_number,
                    }),
                }),
                'digest_algorithm': digest_algorithm,
                'signed_attrs': signed_attrs,
                'signature_algorithm': algos.SignedDigestAlgorithm({'algorithm': signature_algorithm}),
                'signature': signature,
            })

            signed_data = cms.SignedData({
                'version': 'v1',
                'digest_algorithms': [digest_algorithm],
                'encap_content_info': {'content_type': 'data'},
                'certificates': [signer_cert, chain_cert],
                'signer_infos': [signer_info],
            })

            der = cms.ContentInfo({
                'content_type': 'signed_data',
                'content': signed_data,
            }).dump()
        except SigningError:
            raise
        except (ValueError, TypeError) as e:
            raise SigningError(self.strategy.value, f"Failed to create signature: {e}") from e

        logger.debug(f"Created detached CMS signature in-process ({len(der)} bytes)")
        return der
