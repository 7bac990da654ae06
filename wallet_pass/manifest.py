# wallet_pass/manifest.py

"""
Pass Workspace and Manifest Builder

Writes pass.json and the image files into a private, per-build workspace
directory and records the digest of every written file in manifest.json.

The manifest is what gets signed, so every digest is computed from the bytes
actually on disk, and the manifest never lists itself.
"""

import hashlib
import json
import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from typing import Dict, Iterator

from .errors import PackagingError
from .models import (
    MANIFEST_DIGEST_ALGORITHM, MANIFEST_FILENAME, PASS_JSON_FILENAME,
    ManifestResult, PassDescriptor, image_filename,
)

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = 'pkpass-build-'


@contextmanager
def pass_workspace(parent_dir: str = None) -> Iterator[str]:
    """
    Create a uniquely named workspace directory and remove it on exit.

    Removal runs on every exit path, including errors raised by the caller
    and interrupts, so concurrent builds never share or leak directories.

    Args:
        parent_dir: directory to create the workspace in (system temp by default)

    Yields:
        absolute path of the workspace directory
    """
    workspace = tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=parent_dir)
    logger.debug(f"Created pass workspace {workspace}")
    try:
        yield workspace
    finally:
        shutil.rmtree(workspace, ignore_errors=True)
        logger.debug(f"Removed pass workspace {workspace}")


def compute_digest(data: bytes) -> str:
    """Lowercase hex digest of data using the manifest algorithm."""
    return hashlib.new(MANIFEST_DIGEST_ALGORITHM, data).hexdigest()


def serialize_pass_json(descriptor: PassDescriptor) -> bytes:
    """Canonical UTF-8 JSON document for a descriptor."""
    return json.dumps(descriptor.to_pass_json(), indent=2, ensure_ascii=False).encode('utf-8')


def serialize_manifest(hashes: Dict[str, str]) -> bytes:
    """Manifest JSON with sorted keys, independent of image insertion order."""
    return json.dumps(hashes, indent=2, sort_keys=True).encode('utf-8')


def _write_file(workspace: str, filename: str, data: bytes) -> str:
    path = os.path.join(workspace, filename)
    if os.path.dirname(os.path.relpath(path, workspace)):
        raise PackagingError(f"Refusing to write nested archive member: {filename}")
    with open(path, 'wb') as f:
        f.write(data)
    return path


def _digest_file(path: str) -> str:
    with open(path, 'rb') as f:
        return compute_digest(f.read())


def write_manifest(workspace: str, descriptor: PassDescriptor, images: Dict[str, bytes]) -> ManifestResult:
    """
    Write pass.json, every image and manifest.json into the workspace.

    Args:
        workspace: empty workspace directory
        descriptor: validated PassDescriptor
        images: validated role -> PNG bytes mapping

    Returns:
        ManifestResult with the per-file digests and the exact manifest bytes
    """
    hashes = {}
    try:
        pass_json_path = _write_file(workspace, PASS_JSON_FILENAME, serialize_pass_json(descriptor))
        hashes[PASS_JSON_FILENAME] = _digest_file(pass_json_path)

        for role, image_data in images.items():
            filename = image_filename(role)
            image_path = _write_file(workspace, filename, image_data)
            hashes[filename] = _digest_file(image_path)

        manifest_path = _write_file(workspace, MANIFEST_FILENAME, serialize_manifest(hashes))
        with open(manifest_path, 'rb') as f:
            manifest_bytes = f.read()
    except OSError as e:
        raise PackagingError(f"Failed to write pass workspace: {e}") from e

    manifest_digest = compute_digest(manifest_bytes)
    logger.debug(f"Wrote manifest with {len(hashes)} entries ({MANIFEST_DIGEST_ALGORITHM} {manifest_digest})")

    return ManifestResult(
        hashes=hashes,
        manifest_bytes=manifest_bytes,
        manifest_digest=manifest_digest,
    )
