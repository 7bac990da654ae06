# wallet_pass/models.py

"""
Wallet Pass Data Model

Value types shared by the pass-archive pipeline: the pass descriptor and its
field groups, per-call validation results, the build result, and the fixed
tables that describe Apple's image roles and archive layout.

Every value here is created fresh per build/validate call; nothing is cached
between calls.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

# SHA-1 is what PassKit verifiers expect for both the manifest entries and the
# signature's content digest. Upgrading it breaks compatibility with Wallet.
MANIFEST_DIGEST_ALGORITHM = 'sha1'

PASS_JSON_FILENAME = 'pass.json'
MANIFEST_FILENAME = 'manifest.json'
SIGNATURE_FILENAME = 'signature'
IMAGE_EXTENSION = '.png'
RETINA_SUFFIX = '@2x'

SUPPORTED_FORMAT_VERSION = 1
PASS_TYPE_PREFIX = 'pass.'
TEAM_IDENTIFIER_LENGTH = 10

BARCODE_FORMATS = (
    'PKBarcodeFormatQR',
    'PKBarcodeFormatCode128',
    'PKBarcodeFormatPDF417',
    'PKBarcodeFormatAztec',
)
BARCODE_ENCODINGS = ('iso-8859-1', 'utf-8')
DEFAULT_BARCODE_ENCODING = 'iso-8859-1'

# Apple's required image dimensions, keyed by role plus retina suffix.
# Only the icon pair is mandatory; the rest describe the ideal size.
REQUIRED_IMAGE_SIZES: Dict[str, tuple] = {
    'icon': (29, 29),
    'icon@2x': (58, 58),
}

# Recommended dimensions as (width, height, tolerance in pixels).
RECOMMENDED_IMAGE_SIZES: Dict[str, tuple] = {
    'icon': (29, 29, 0),
    'icon@2x': (58, 58, 0),
    'logo': (160, 50, 10),
    'logo@2x': (320, 100, 20),
    'strip': (320, 84, 10),
    'strip@2x': (640, 168, 20),
    'background': (180, 220, 10),
    'background@2x': (360, 440, 20),
    'thumbnail': (90, 90, 5),
    'thumbnail@2x': (180, 180, 10),
}

IMAGE_ROLES = tuple(RECOMMENDED_IMAGE_SIZES.keys())
MANDATORY_IMAGE_ROLES = ('icon', 'icon@2x')

REQUIRED_ARCHIVE_FILES = (
    PASS_JSON_FILENAME,
    MANIFEST_FILENAME,
    SIGNATURE_FILENAME,
    'icon.png',
    'icon@2x.png',
)
ALLOWED_ARCHIVE_FILES = frozenset(
    REQUIRED_ARCHIVE_FILES + tuple(f'{role}{IMAGE_EXTENSION}' for role in IMAGE_ROLES)
)

FIELD_GROUPS = (
    ('primary_fields', 'primaryFields'),
    ('secondary_fields', 'secondaryFields'),
    ('auxiliary_fields', 'auxiliaryFields'),
    ('back_fields', 'backFields'),
)


def image_filename(role: str) -> str:
    """Return the archive filename for an image role ('icon@2x' -> 'icon@2x.png')."""
    return f'{role}{IMAGE_EXTENSION}'


def split_role(role: str) -> tuple:
    """Split a role name into (base_role, is_retina)."""
    if role.endswith(RETINA_SUFFIX):
        return role[:-len(RETINA_SUFFIX)], True
    return role, False


@dataclass
class PassField:
    """A single key/label/value entry in one of the pass field groups."""
    key: str
    value: str
    label: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        data = {'key': self.key}
        if self.label is not None:
            data['label'] = self.label
        data['value'] = self.value
        return data

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'PassField':
        value = data.get('value', '')
        return cls(
            key=data.get('key', ''),
            value=value if isinstance(value, str) else str(value),
            label=data.get('label'),
        )


@dataclass
class Barcode:
    """Barcode shown on the front of the pass."""
    format: str
    message: str
    message_encoding: Optional[str] = None
    alt_text: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        data = {
            'format': self.format,
            'message': self.message,
            'messageEncoding': self.message_encoding or DEFAULT_BARCODE_ENCODING,
        }
        if self.alt_text is not None:
            data['altText'] = self.alt_text
        return data

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'Barcode':
        return cls(
            format=data.get('format', ''),
            message=data.get('message', ''),
            message_encoding=data.get('messageEncoding'),
            alt_text=data.get('altText'),
        )


@dataclass
class PassDescriptor:
    """
    Structured description of a generic Apple Wallet pass.

    The serial number is always supplied by the caller so that rendering the
    same descriptor twice yields byte-identical pass.json content.
    """
    pass_type_identifier: str
    team_identifier: str
    serial_number: str
    description: str
    organization_name: str = ''
    format_version: Any = SUPPORTED_FORMAT_VERSION
    background_color: Optional[str] = None
    foreground_color: Optional[str] = None
    label_color: Optional[str] = None
    primary_fields: List[PassField] = field(default_factory=list)
    secondary_fields: List[PassField] = field(default_factory=list)
    auxiliary_fields: List[PassField] = field(default_factory=list)
    back_fields: List[PassField] = field(default_factory=list)
    barcode: Optional[Barcode] = None
    parse_errors: List[str] = field(default_factory=list, repr=False, compare=False)

    def field_groups(self) -> Dict[str, List[PassField]]:
        """Return the four field groups keyed by their pass.json names, in order."""
        return {json_name: getattr(self, attr) for attr, json_name in FIELD_GROUPS}

    def to_pass_json(self) -> Dict[str, Any]:
        """
        Render the descriptor as an Apple PassKit "generic" pass dictionary.

        Key order is fixed and unset optional keys are omitted, so the JSON
        document serialized from the result is canonical.
        """
        data = {
            'formatVersion': self.format_version,
            'passTypeIdentifier': self.pass_type_identifier,
            'teamIdentifier': self.team_identifier,
            'organizationName': self.organization_name,
            'serialNumber': self.serial_number,
            'description': self.description,
        }
        for key, color in (
            ('backgroundColor', self.background_color),
            ('foregroundColor', self.foreground_color),
            ('labelColor', self.label_color),
        ):
            if color is not None:
                data[key] = color

        data['generic'] = {
            json_name: [f.to_json() for f in fields]
            for json_name, fields in self.field_groups().items()
        }

        if self.barcode is not None:
            barcode_json = self.barcode.to_json()
            data['barcode'] = barcode_json
            data['barcodes'] = [dict(barcode_json)]

        return data

    @classmethod
    def from_pass_json(cls, data: Dict[str, Any]) -> 'PassDescriptor':
        """
        Parse a pass.json style dictionary.

        Missing keys become empty values instead of raising, so that the
        descriptor validator can report every problem at once. Sections of
        the wrong JSON type are dropped and recorded in parse_errors; scalar
        values are kept as given and type-checked by the validator.
        """
        if not isinstance(data, dict):
            return cls('', '', '', '', format_version=None,
                       parse_errors=['pass.json must be a JSON object'])

        parse_errors = []

        generic = data.get('generic')
        if generic is None:
            generic = {}
        elif not isinstance(generic, dict):
            parse_errors.append('generic must be an object')
            generic = {}

        groups = {}
        for attr, json_name in FIELD_GROUPS:
            entries = generic.get(json_name)
            if entries is None:
                entries = []
            elif not isinstance(entries, list):
                parse_errors.append(f'{json_name} must be a list')
                entries = []
            fields = []
            for index, entry in enumerate(entries):
                if isinstance(entry, dict):
                    fields.append(PassField.from_json(entry))
                else:
                    parse_errors.append(f'{json_name}[{index}] must be an object')
            groups[attr] = fields

        barcode_data = data.get('barcode')
        if barcode_data is None:
            barcodes = data.get('barcodes')
            if isinstance(barcodes, list):
                barcode_data = barcodes[0] if barcodes else None
            elif barcodes is not None:
                parse_errors.append('barcodes must be a list')

        barcode = None
        if barcode_data is not None:
            if isinstance(barcode_data, dict):
                barcode = Barcode.from_json(barcode_data)
            else:
                parse_errors.append('barcode must be an object')

        return cls(
            pass_type_identifier=data.get('passTypeIdentifier', ''),
            team_identifier=data.get('teamIdentifier', ''),
            serial_number=data.get('serialNumber', ''),
            description=data.get('description', ''),
            organization_name=data.get('organizationName', ''),
            format_version=data.get('formatVersion'),
            background_color=data.get('backgroundColor'),
            foreground_color=data.get('foregroundColor'),
            label_color=data.get('labelColor'),
            barcode=barcode,
            parse_errors=parse_errors,
            **groups,
        )
