# wallet_pass/archive.py

"""
Pass Archive Structure Check

Inspects an existing .pkpass file: it must be a readable ZIP, it must carry
every required member, and it may carry nothing besides the known members.

This is a structural check only. Manifest digests and the signature are not
verified here; see wallet_pass.signers.verify for that.
"""

import logging
import os
import zipfile
import zlib

from .models import ALLOWED_ARCHIVE_FILES, REQUIRED_ARCHIVE_FILES, ArchiveCheckResult

logger = logging.getLogger(__name__)


def validate_pkpass_archive(file_path: str) -> ArchiveCheckResult:
    """
    Check the structure of a .pkpass archive.

    Args:
        file_path: path to the archive

    Returns:
        ArchiveCheckResult with the member names and every problem found
    """
    result = ArchiveCheckResult()

    if not os.path.isfile(file_path):
        result.errors.append(f"File not found: {file_path}")
        return result

    try:
        with zipfile.ZipFile(file_path, 'r') as zf:
            result.entries = zf.namelist()

            corrupt = zf.testzip()
            if corrupt is not None:
                result.errors.append(f"Corrupt archive member: {corrupt}")
    except zipfile.BadZipFile:
        result.errors.append("File is not a valid ZIP archive")
        return result
    except (zlib.error, EOFError, NotImplementedError) as e:
        # Damaged deflate stream or a compression method zipfile cannot read
        result.errors.append(f"Corrupt archive member: {e}")
        return result
    except (OSError, RuntimeError) as e:
        result.errors.append(f"Error reading .pkpass file: {e}")
        return result

    names = set(result.entries)

    for required in REQUIRED_ARCHIVE_FILES:
        if required not in names:
            result.errors.append(f"Missing required file: {required}")

    # Nested paths and directory entries are never valid members.
    for name in sorted(names):
        if name not in ALLOWED_ARCHIVE_FILES:
            result.errors.append(f"Unexpected file: {name}")

    if result.errors:
        logger.info(f"Archive {file_path} failed structure check: {result.errors}")

    return result
