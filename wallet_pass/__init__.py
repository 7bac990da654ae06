# wallet_pass/__init__.py

"""
Wallet Pass Package

Builds and checks Apple Wallet .pkpass archives:
- Descriptor and image validation
- Manifest generation in a private per-build workspace
- Detached manifest signing (openssl, in-process CMS, or a development placeholder)
- Archive packaging and structure checks
"""

from .archive import validate_pkpass_archive
from .builder import PkPassBuilder, build_pkpass, package_archive
from .errors import (
    ArchiveStructureError,
    DescriptorError,
    ImageError,
    MissingRequiredImageError,
    PackagingError,
    PassBuildError,
    SigningError,
)
from .manifest import pass_workspace, write_manifest
from .models import (
    MANIFEST_DIGEST_ALGORITHM,
    ArchiveCheckResult,
    Barcode,
    BuildResult,
    ImageValidationResult,
    ManifestResult,
    PassDescriptor,
    PassField,
    ValidationResult,
)
from .signers import (
    DUMMY_SIGNING_MATERIAL,
    CertificateSigningMaterial,
    DummySigningMaterial,
    SignatureEngine,
    SigningMaterial,
    verify_pkpass_signature,
)
from .validation import validate_descriptor, validate_image, validate_images, validate_required_images

__all__ = [
    'validate_pkpass_archive',
    'PkPassBuilder',
    'build_pkpass',
    'package_archive',
    'ArchiveStructureError',
    'DescriptorError',
    'ImageError',
    'MissingRequiredImageError',
    'PackagingError',
    'PassBuildError',
    'SigningError',
    'pass_workspace',
    'write_manifest',
    'MANIFEST_DIGEST_ALGORITHM',
    'ArchiveCheckResult',
    'Barcode',
    'BuildResult',
    'ImageValidationResult',
    'ManifestResult',
    'PassDescriptor',
    'PassField',
    'ValidationResult',
    'DUMMY_SIGNING_MATERIAL',
    'CertificateSigningMaterial',
    'DummySigningMaterial',
    'SignatureEngine',
    'SigningMaterial',
    'verify_pkpass_signature',
    'validate_descriptor',
    'validate_image',
    'validate_images',
    'validate_required_images',
]
