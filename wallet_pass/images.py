# wallet_pass/images.py

"""
Pass Image Helpers

Small Pillow helpers for producing images that pass validation: a solid
placeholder for development builds, and a resize of arbitrary artwork to a
role's recommended dimensions.
"""

import logging
from io import BytesIO
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from .models import RECOMMENDED_IMAGE_SIZES

logger = logging.getLogger(__name__)

PLACEHOLDER_COLOR = (100, 100, 100, 255)


def role_size(role: str) -> Tuple[int, int]:
    """Recommended (width, height) for an image role."""
    if role not in RECOMMENDED_IMAGE_SIZES:
        raise ValueError(f"Unknown image role: {role}")
    width, height, _ = RECOMMENDED_IMAGE_SIZES[role]
    return width, height


def placeholder_png(width: int, height: int, color: tuple = PLACEHOLDER_COLOR) -> bytes:
    """
    Create a solid-color PNG.

    Pillow writes no timestamps into PNG output, so the same arguments
    always produce the same bytes.
    """
    img = Image.new('RGBA', (width, height), color)
    output = BytesIO()
    img.save(output, format='PNG')
    return output.getvalue()


def fit_image_for_role(image_data: bytes, role: str) -> bytes:
    """
    Convert artwork to a PNG at a role's recommended size.

    Transparent and palette images are flattened onto white, matching how
    Wallet renders them on light passes.

    Args:
        image_data: raw image bytes in any format Pillow can read
        role: image role, e.g. 'logo' or 'icon@2x'

    Returns:
        PNG bytes
    """
    target_size = role_size(role)

    try:
        with Image.open(BytesIO(image_data)) as img:
            img.load()
            if img.mode in ('RGBA', 'LA', 'P'):
                background = Image.new('RGB', img.size, (255, 255, 255))
                img = img.convert('RGBA')
                background.paste(img, mask=img.split()[-1])
                img = background
            elif img.mode != 'RGB':
                img = img.convert('RGB')

            if img.size != target_size:
                img = img.resize(target_size, Image.Resampling.LANCZOS)

            output = BytesIO()
            img.save(output, format='PNG', optimize=True)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ValueError(f"Could not process image for {role}: {e}") from e

    logger.debug(f"Resized image for {role} to {target_size[0]}x{target_size[1]}")
    return output.getvalue()


def placeholder_images(roles=('icon', 'icon@2x')) -> dict:
    """Placeholder PNGs at the recommended size for each role."""
    return {role: placeholder_png(*role_size(role)) for role in roles}
