# wallet_pass/builder.py

"""
Apple Wallet Pass Builder

Turns a pass descriptor and its PNG images into a signed .pkpass archive:

    descriptor validation -> required images -> image validation
    -> workspace + manifest -> signature -> archive

Validation problems are collected and raised together; signing and packaging
problems abort the build at once. The workspace is removed on every exit
path and a failed build never leaves a partial archive at the output path.
"""

import logging
import os
import tempfile
import zipfile
from typing import Dict

from .errors import ImageError, MissingRequiredImageError, PackagingError, PassBuildError
from .manifest import pass_workspace, write_manifest
from .models import SIGNATURE_FILENAME, BuildResult, PassDescriptor
from .signers import SignatureEngine, SigningMaterial
from .validation import validate_descriptor, validate_image, validate_required_images

logger = logging.getLogger(__name__)

# Fixed member timestamp so identical input packs to identical archive bytes.
ARCHIVE_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


def package_archive(workspace: str, signature: bytes, output_path: str) -> int:
    """
    Write the signature into the workspace and zip the workspace flat.

    Args:
        workspace: directory holding pass.json, manifest.json and the images
        signature: detached signature bytes
        output_path: destination .pkpass path; parent directories are created

    Returns:
        size of the written archive in bytes
    """
    output_path = os.path.abspath(output_path)
    output_dir = os.path.dirname(output_path)
    partial_path = None

    try:
        with open(os.path.join(workspace, SIGNATURE_FILENAME), 'wb') as f:
            f.write(signature)

        os.makedirs(output_dir, exist_ok=True)

        fd, partial_path = tempfile.mkstemp(prefix='.pkpass-', suffix='.partial', dir=output_dir)
        with os.fdopen(fd, 'wb') as archive_file:
            with zipfile.ZipFile(archive_file, 'w', zipfile.ZIP_DEFLATED) as zf:
                for name in sorted(os.listdir(workspace)):
                    member_path = os.path.join(workspace, name)
                    if not os.path.isfile(member_path):
                        raise PackagingError(f"Unexpected directory in pass workspace: {name}")
                    with open(member_path, 'rb') as member:
                        info = zipfile.ZipInfo(name, date_time=ARCHIVE_TIMESTAMP)
                        info.compress_type = zipfile.ZIP_DEFLATED
                        info.external_attr = 0o644 << 16
                        zf.writestr(info, member.read())

        os.replace(partial_path, output_path)
        partial_path = None
        return os.path.getsize(output_path)
    except (OSError, zipfile.BadZipFile) as e:
        raise PackagingError(f"Failed to write .pkpass archive to {output_path}: {e}") from e
    finally:
        if partial_path and os.path.exists(partial_path):
            os.remove(partial_path)


class PkPassBuilder:
    """
    Builds .pkpass archives.

    Holds no per-build state, so one instance can serve concurrent builds;
    each build owns its own workspace directory.
    """

    def __init__(self, signature_engine: SignatureEngine = None, workspace_root: str = None):
        """
        Initialize the builder.

        Args:
            signature_engine: SignatureEngine (default strategies when omitted)
            workspace_root: parent directory for build workspaces (system temp by default)
        """
        self.signature_engine = signature_engine or SignatureEngine()
        self.workspace_root = workspace_root

    def validate_inputs(self, descriptor: PassDescriptor, images: Dict[str, bytes]) -> Dict[str, list]:
        """
        Run every pre-build check.

        Returns:
            role -> soft warnings for images that passed with warnings
        """
        validate_descriptor(descriptor).raise_if_invalid()

        missing = validate_required_images(images.keys())
        if missing:
            raise MissingRequiredImageError(missing)

        failures = {}
        warnings = {}
        for role, image_data in images.items():
            result = validate_image(image_data, role)
            if result.errors:
                failures[role] = result.errors
            if result.warnings:
                warnings[role] = result.warnings
                logger.warning(f"Warning for {role}: {', '.join(result.warnings)}")

        if failures:
            raise ImageError(failures, warnings)

        return warnings

    def build(self, descriptor: PassDescriptor, images: Dict[str, bytes],
              signing_material: SigningMaterial, output_path: str) -> BuildResult:
        """
        Build and sign a .pkpass archive.

        Args:
            descriptor: PassDescriptor with a caller-supplied serial number
            images: role -> PNG bytes ('icon' and 'icon@2x' are mandatory)
            signing_material: DummySigningMaterial or CertificateSigningMaterial
            output_path: where to write the archive

        Returns:
            BuildResult with the archive path, size and manifest digests
        """
        try:
            warnings = self.validate_inputs(descriptor, images)

            with pass_workspace(self.workspace_root) as workspace:
                manifest = write_manifest(workspace, descriptor, images)
                signature, strategy = self.signature_engine.sign_manifest(
                    manifest.manifest_bytes, signing_material
                )
                size = package_archive(workspace, signature, output_path)

        except PassBuildError as e:
            logger.error(f"Error building .pkpass for serial {descriptor.serial_number!r}: {e}")
            raise

        logger.info(
            f"Generated .pkpass {output_path} ({size} bytes, {len(manifest.hashes)} files, "
            f"signed with {strategy})"
        )

        return BuildResult(
            path=output_path,
            size=size,
            manifest_hashes=manifest.hashes,
            manifest_digest=manifest.manifest_digest,
            signing_strategy=strategy,
            warnings=[w for role_warnings in warnings.values() for w in role_warnings],
        )


def build_pkpass(descriptor: PassDescriptor, images: Dict[str, bytes],
                 signing_material: SigningMaterial, output_path: str) -> BuildResult:
    """
    Convenience function to build a .pkpass with the default signing strategies.

    Args:
        descriptor: PassDescriptor
        images: role -> PNG bytes
        signing_material: DummySigningMaterial or CertificateSigningMaterial
        output_path: where to write the archive

    Returns:
        BuildResult
    """
    return PkPassBuilder().build(descriptor, images, signing_material, output_path)
