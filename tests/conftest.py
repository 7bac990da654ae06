"""
Pytest configuration and shared fixtures for all tests.
"""
from datetime import datetime, timedelta, timezone
from io import BytesIO

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID
from PIL import Image

from wallet_pass.models import Barcode, PassDescriptor, PassField
from wallet_pass.signers import CertificateSigningMaterial

BUNDLE_PASSWORD = 'test-bundle-password'


def make_png(width, height, image_format='PNG', color=(0, 120, 200, 255)):
    """Encode a solid image of the given size."""
    mode = 'RGBA' if image_format == 'PNG' else 'RGB'
    img = Image.new(mode, (width, height), color if mode == 'RGBA' else color[:3])
    output = BytesIO()
    img.save(output, format=image_format)
    return output.getvalue()


@pytest.fixture
def png_factory():
    """Factory fixture producing encoded images."""
    return make_png


@pytest.fixture
def valid_images():
    """The two mandatory icons at their exact sizes."""
    return {
        'icon': make_png(29, 29),
        'icon@2x': make_png(58, 58),
    }


@pytest.fixture
def descriptor():
    """The smallest descriptor that passes validation."""
    return PassDescriptor(
        pass_type_identifier='pass.com.x',
        team_identifier='1234567890',
        serial_number='s1',
        description='d',
        primary_fields=[PassField(key='a', value='b')],
    )


@pytest.fixture
def full_descriptor():
    """Descriptor using every optional section."""
    return PassDescriptor(
        pass_type_identifier='pass.com.example.membership',
        team_identifier='ABCDE12345',
        serial_number='member-0001',
        description='Membership card',
        organization_name='Example Club',
        background_color='rgb(26, 71, 42)',
        foreground_color='rgb(255, 255, 255)',
        label_color='rgb(200, 200, 200)',
        primary_fields=[PassField(key='member', label='MEMBER', value='Jane Doe')],
        secondary_fields=[PassField(key='year', label='YEAR', value='2025')],
        auxiliary_fields=[PassField(key='level', label='LEVEL', value='Gold')],
        back_fields=[PassField(key='terms', label='Terms', value='Non-transferable.')],
        barcode=Barcode(format='PKBarcodeFormatQR', message='ECS-2025-ABC123', alt_text='ABC123'),
    )


def _name(common_name):
    return x509.Name([
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, 'Wallet Pass Tests'),
    ])


def _certificate(subject, issuer, public_key, signing_key, is_ca):
    now = datetime.now(timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=is_ca, path_length=None), critical=True)
        .sign(signing_key, hashes.SHA256())
    )


@pytest.fixture(scope='session')
def signing_identity():
    """
    A throwaway chain: a self-signed authority standing in for the WWDR
    certificate and a pass certificate issued by it.
    """
    ca_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    ca_name = _name('Test Wallet Authority')
    ca_cert = _certificate(ca_name, ca_name, ca_key.public_key(), ca_key, is_ca=True)

    signer_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    signer_cert = _certificate(
        _name('Pass Type ID: pass.com.x'), ca_name, signer_key.public_key(), ca_key, is_ca=False
    )

    return {
        'ca_key': ca_key,
        'ca_cert': ca_cert,
        'signer_key': signer_key,
        'signer_cert': signer_cert,
    }


@pytest.fixture(scope='session')
def certificate_material(signing_identity):
    """Password-protected PKCS#12 bundle plus a PEM chain certificate."""
    p12_data = pkcs12.serialize_key_and_certificates(
        name=b'pass',
        key=signing_identity['signer_key'],
        cert=signing_identity['signer_cert'],
        cas=None,
        encryption_algorithm=serialization.BestAvailableEncryption(BUNDLE_PASSWORD.encode('utf-8')),
    )
    return CertificateSigningMaterial(
        p12_data=p12_data,
        password=BUNDLE_PASSWORD,
        wwdr_data=signing_identity['ca_cert'].public_bytes(serialization.Encoding.PEM),
    )


@pytest.fixture
def certificate_files(tmp_path, certificate_material):
    """The certificate bundle and chain certificate written to disk."""
    p12_path = tmp_path / 'pass.p12'
    wwdr_path = tmp_path / 'wwdr.pem'
    p12_path.write_bytes(certificate_material.p12_data)
    wwdr_path.write_bytes(certificate_material.wwdr_data)
    return {'p12': str(p12_path), 'wwdr': str(wwdr_path), 'password': BUNDLE_PASSWORD}
