# wallet_pass/validation.py

"""
Pass Descriptor and Image Validation

Checks a pass descriptor and its image assets against Apple's requirements
before anything is written to disk. Every rule is evaluated and every
violation reported; nothing short-circuits on the first failure.
"""

import logging
from io import BytesIO
from typing import Dict, Iterable, List

from PIL import Image, UnidentifiedImageError

from .models import (
    BARCODE_ENCODINGS, BARCODE_FORMATS, MANDATORY_IMAGE_ROLES,
    PASS_TYPE_PREFIX, RECOMMENDED_IMAGE_SIZES, REQUIRED_IMAGE_SIZES,
    RETINA_SUFFIX, SUPPORTED_FORMAT_VERSION, TEAM_IDENTIFIER_LENGTH,
    ImageValidationResult, PassDescriptor, ValidationResult, split_role,
)

logger = logging.getLogger(__name__)

ACCEPTED_IMAGE_FORMAT = 'png'


def validate_descriptor(descriptor: PassDescriptor) -> ValidationResult:
    """
    Validate a pass descriptor.

    Args:
        descriptor: PassDescriptor to check

    Returns:
        ValidationResult with every violation found, in rule order
    """
    errors = list(descriptor.parse_errors)

    # bool is an int subclass and 1.0 == 1; only the literal integer counts
    if type(descriptor.format_version) is not int or descriptor.format_version != SUPPORTED_FORMAT_VERSION:
        errors.append(f'formatVersion must be {SUPPORTED_FORMAT_VERSION}')

    pass_type_identifier = descriptor.pass_type_identifier
    if not isinstance(pass_type_identifier, str) or not pass_type_identifier.startswith(PASS_TYPE_PREFIX):
        errors.append(f'passTypeIdentifier must start with "{PASS_TYPE_PREFIX}"')

    team_identifier = descriptor.team_identifier
    if not isinstance(team_identifier, str):
        errors.append('teamIdentifier must be a string')
    elif len(team_identifier) != TEAM_IDENTIFIER_LENGTH:
        errors.append(f'teamIdentifier must be exactly {TEAM_IDENTIFIER_LENGTH} characters')

    for name, value in (('serialNumber', descriptor.serial_number), ('description', descriptor.description)):
        if not value:
            errors.append(f'{name} is required')
        elif not isinstance(value, str):
            errors.append(f'{name} must be a string')

    for name, value in (
        ('organizationName', descriptor.organization_name),
        ('backgroundColor', descriptor.background_color),
        ('foregroundColor', descriptor.foreground_color),
        ('labelColor', descriptor.label_color),
    ):
        if value is not None and not isinstance(value, str):
            errors.append(f'{name} must be a string')

    groups = descriptor.field_groups()
    if not any(groups.values()):
        errors.append('At least one field (primary, secondary, auxiliary, or back) is required')

    errors.extend(_validate_field_keys(groups))

    if descriptor.barcode is not None:
        barcode = descriptor.barcode
        if barcode.format not in BARCODE_FORMATS:
            errors.append(f'Invalid barcode format: {barcode.format}')
        if not barcode.message:
            errors.append('Barcode message is required')
        elif not isinstance(barcode.message, str):
            errors.append('Barcode message must be a string')
        if barcode.message_encoding is not None and barcode.message_encoding not in BARCODE_ENCODINGS:
            errors.append(f'Invalid barcode message encoding: {barcode.message_encoding}')

    if errors:
        logger.debug(f"Descriptor {descriptor.serial_number!r} failed validation: {errors}")

    return ValidationResult(errors=errors)


def _validate_field_keys(groups: Dict[str, list]) -> List[str]:
    """Field keys must be present, be strings and be unique across all field groups."""
    errors = []
    seen = set()
    for group_name, fields in groups.items():
        for index, pass_field in enumerate(fields):
            if not pass_field.key:
                errors.append(f'{group_name}[{index}] must have a key')
                continue
            if not isinstance(pass_field.key, str):
                errors.append(f'{group_name}[{index}] key must be a string')
                continue
            if pass_field.label is not None and not isinstance(pass_field.label, str):
                errors.append(f'{group_name}[{index}] label must be a string')
            if pass_field.key in seen:
                errors.append(f'Field key "{pass_field.key}" is used more than once')
            seen.add(pass_field.key)
    return errors


def validate_required_images(roles: Iterable[str]) -> List[str]:
    """
    Check that every mandatory image role is present.

    Runs before any image is decoded.

    Args:
        roles: image role names supplied by the caller

    Returns:
        list of missing mandatory roles (empty when all are present)
    """
    provided = set(roles)
    return [role for role in MANDATORY_IMAGE_ROLES if role not in provided]


def validate_image(image_data: bytes, role: str, is_retina: bool = False) -> ImageValidationResult:
    """
    Validate a single image asset.

    Only the image header is read: width, height and format are all that is
    needed. Mandatory roles must match their size exactly; every role is also
    compared against its recommended size, and a miss there is only a warning.

    Args:
        image_data: raw image bytes
        role: base role name ('icon') or full role name ('icon@2x')
        is_retina: True for the '@2x' variant of a base role

    Returns:
        ImageValidationResult with separate errors and warnings
    """
    base_role, retina_in_name = split_role(role)
    image_key = f'{base_role}{RETINA_SUFFIX}' if (is_retina or retina_in_name) else base_role
    result = ImageValidationResult(role=image_key)

    if image_key not in RECOMMENDED_IMAGE_SIZES:
        result.errors.append(f'{image_key} is not a recognized image role')
        return result

    try:
        with Image.open(BytesIO(image_data)) as img:
            width, height = img.size
            image_format = (img.format or '').lower()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        result.errors.append(f'Could not determine dimensions for {image_key}: {e}')
        return result

    if not width or not height:
        result.errors.append(f'Could not determine dimensions for {image_key}')
        return result

    result.width, result.height, result.format = width, height, image_format

    if image_format != ACCEPTED_IMAGE_FORMAT:
        result.errors.append(f'{image_key} must be a PNG image, got {image_format or "unknown"}')

    required = REQUIRED_IMAGE_SIZES.get(image_key)
    if required and (width, height) != required:
        result.errors.append(
            f'{image_key} must be exactly {required[0]}x{required[1]} pixels, got {width}x{height}'
        )

    rec_w, rec_h, tolerance = RECOMMENDED_IMAGE_SIZES[image_key]
    if abs(width - rec_w) > tolerance or abs(height - rec_h) > tolerance:
        result.warnings.append(
            f'{image_key} recommended size is {rec_w}x{rec_h} pixels '
            f'(±{tolerance}), got {width}x{height}'
        )

    return result


def validate_images(images: Dict[str, bytes]) -> Dict[str, ImageValidationResult]:
    """Validate every image in a role -> bytes mapping."""
    return {
        role: validate_image(data, role)
        for role, data in images.items()
    }
