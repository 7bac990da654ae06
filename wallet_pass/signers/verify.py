# wallet_pass/signers/verify.py

"""
Signature Verification

Opt-in check that a detached signature really covers a manifest: the signed
message digest must match the manifest bytes and the signature must verify
against the signer certificate carried inside the signature.

Trust is not evaluated: nothing here walks the chain up to Apple's root.
The archive structure check in wallet_pass.archive never calls into this
module.
"""

import hashlib
import json
import logging
import zipfile
from typing import List

from asn1crypto import cms, core
from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa

from ..models import MANIFEST_DIGEST_ALGORITHM, MANIFEST_FILENAME, SIGNATURE_FILENAME
from .dummy import DUMMY_SIGNATURE

logger = logging.getLogger(__name__)

HASH_ALGORITHMS = {
    'sha1': hashes.SHA1,
    'sha224': hashes.SHA224,
    'sha256': hashes.SHA256,
    'sha384': hashes.SHA384,
    'sha512': hashes.SHA512,
}

# Context-specific [0] tag of signedAttrs and the universal SET tag that the
# signature is actually computed over.
_IMPLICIT_SIGNED_ATTRS_TAG = 0xA0
_SET_TAG = 0x31


def _find_signer_certificate(signed_data, signer_info):
    sid = signer_info['sid']
    if sid.name != 'issuer_and_serial_number':
        return None
    issuer = sid.chosen['issuer']
    serial = sid.chosen['serial_number'].native
    certificates = signed_data['certificates']
    if isinstance(certificates, core.Void):
        return None
    for choice in certificates:
        if choice.name != 'certificate':
            continue
        candidate = choice.chosen
        if candidate.serial_number == serial and candidate.issuer == issuer:
            return candidate
    return None


def verify_manifest_signature(manifest: bytes, signature: bytes) -> List[str]:
    """
    Verify a detached CMS signature over manifest bytes.

    Args:
        manifest: manifest.json bytes
        signature: DER-encoded detached signature

    Returns:
        list of problems (empty when the signature verifies)
    """
    if signature == DUMMY_SIGNATURE:
        return ['Signature is a development placeholder and cannot be verified']

    try:
        content_info = cms.ContentInfo.load(signature)
        if content_info['content_type'].native != 'signed_data':
            return [f"Signature is not signed data: {content_info['content_type'].native}"]
        signed_data = content_info['content']
        signer_infos = signed_data['signer_infos']
        if len(signer_infos) == 0:
            return ['Signature has no signer information']
        signer_info = signer_infos[0]
        digest_name = signer_info['digest_algorithm']['algorithm'].native
        signed_attrs = signer_info['signed_attrs']
    except ValueError as e:
        return [f"Signature could not be parsed: {e}"]

    errors = []

    if signed_data['encap_content_info']['content'].native is not None:
        errors.append('Signature is not detached')

    if digest_name not in HASH_ALGORITHMS:
        return errors + [f"Unsupported digest algorithm: {digest_name}"]

    if isinstance(signed_attrs, core.Void) or len(signed_attrs) == 0:
        return errors + ['Signature has no signed attributes']

    message_digest = None
    for attribute in signed_attrs:
        if attribute['type'].native == 'message_digest':
            message_digest = attribute['values'][0].native
    if message_digest is None:
        return errors + ['Signature has no message digest attribute']

    if message_digest != hashlib.new(digest_name, manifest).digest():
        errors.append('Signed message digest does not match manifest')

    asn1_certificate = _find_signer_certificate(signed_data, signer_info)
    if asn1_certificate is None:
        return errors + ['Signer certificate not found in signature']

    public_key = x509.load_der_x509_certificate(asn1_certificate.dump()).public_key()
    signed_bytes = signed_attrs.dump()
    if signed_bytes[0] == _IMPLICIT_SIGNED_ATTRS_TAG:
        signed_bytes = bytes([_SET_TAG]) + signed_bytes[1:]
    hash_algorithm = HASH_ALGORITHMS[digest_name]()

    try:
        if isinstance(public_key, rsa.RSAPublicKey):
            public_key.verify(signer_info['signature'].native, signed_bytes, padding.PKCS1v15(), hash_algorithm)
        elif isinstance(public_key, ec.EllipticCurvePublicKey):
            public_key.verify(signer_info['signature'].native, signed_bytes, ec.ECDSA(hash_algorithm))
        else:
            errors.append(f"Unsupported signer key type: {type(public_key).__name__}")
    except InvalidSignature:
        errors.append('Signature does not verify against the signer certificate')

    return errors


def verify_pkpass_signature(file_path: str) -> List[str]:
    """
    Check manifest digests and the signature of a .pkpass archive.

    Args:
        file_path: path to the archive

    Returns:
        list of problems (empty when every digest matches and the signature verifies)
    """
    try:
        with zipfile.ZipFile(file_path) as zf:
            names = set(zf.namelist())
            if MANIFEST_FILENAME not in names or SIGNATURE_FILENAME not in names:
                return ['Archive has no manifest.json or signature']
            manifest = zf.read(MANIFEST_FILENAME)
            signature = zf.read(SIGNATURE_FILENAME)
            members = {
                name: zf.read(name)
                for name in names
                if name not in (MANIFEST_FILENAME, SIGNATURE_FILENAME)
            }
    except (OSError, zipfile.BadZipFile) as e:
        return [f"Error reading .pkpass file: {e}"]

    try:
        hashes_by_name = json.loads(manifest.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        return [f"manifest.json is not valid JSON: {e}"]
    if not isinstance(hashes_by_name, dict):
        return ['manifest.json is not a JSON object']

    errors = []
    for name in sorted(members):
        expected = hashes_by_name.get(name)
        if expected is None:
            errors.append(f"{name} is not listed in manifest.json")
        elif hashlib.new(MANIFEST_DIGEST_ALGORITHM, members[name]).hexdigest() != expected:
            errors.append(f"{name} does not match its manifest digest")
    for name in sorted(set(hashes_by_name) - set(members)):
        errors.append(f"manifest.json lists missing file: {name}")

    errors.extend(verify_manifest_signature(manifest, signature))

    if errors:
        logger.info(f"Signature verification of {file_path} found {len(errors)} problem(s)")
    return errors
