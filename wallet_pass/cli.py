# wallet_pass/cli.py

"""
Wallet Pass CLI Commands

Command line entry point for:
- Building a .pkpass from a pass.json descriptor and an image directory
- Checking the structure (and optionally the signature) of a .pkpass
- Generating a sample pass for smoke testing
"""

import json
import logging
import os
import uuid

import click

from .archive import validate_pkpass_archive
from .builder import PkPassBuilder
from .config import WalletPassConfig
from .errors import ImageError, PassBuildError, SigningError
from .images import fit_image_for_role, placeholder_images
from .log_config import configure_logging
from .models import IMAGE_EXTENSION, Barcode, PassDescriptor, PassField
from .signers import DUMMY_SIGNING_MATERIAL, SignatureEngine, verify_pkpass_signature

logger = logging.getLogger(__name__)

DETERMINISTIC_SERIAL = 'deterministic-serial-12345'
SAMPLE_IMAGE_ROLES = ('icon', 'icon@2x', 'logo', 'logo@2x')


def load_images(images_dir: str, resize: bool = False) -> dict:
    """Read every PNG in a directory, keyed by file name without extension."""
    images = {}
    for filename in sorted(os.listdir(images_dir)):
        if not filename.endswith(IMAGE_EXTENSION):
            continue
        role = filename[:-len(IMAGE_EXTENSION)]
        with open(os.path.join(images_dir, filename), 'rb') as f:
            data = f.read()
        if resize:
            data = fit_image_for_role(data, role)
        images[role] = data
    return images


def sample_descriptor(serial_number: str, pass_type_identifier: str, team_identifier: str) -> PassDescriptor:
    """A small generic membership pass used by make-sample."""
    return PassDescriptor(
        pass_type_identifier=pass_type_identifier,
        team_identifier=team_identifier,
        serial_number=serial_number,
        description='Sample membership pass',
        organization_name='Sample Organization',
        background_color='rgb(33, 62, 150)',
        foreground_color='rgb(255, 255, 255)',
        label_color='rgb(200, 200, 200)',
        primary_fields=[PassField(key='member', label='MEMBER', value='Sample Member')],
        secondary_fields=[PassField(key='level', label='LEVEL', value='Gold')],
        auxiliary_fields=[PassField(key='visits', label='VISITS', value='3')],
        back_fields=[PassField(key='terms', label='Terms', value='Sample pass for testing only.')],
        barcode=Barcode(format='PKBarcodeFormatQR', message=serial_number, alt_text=serial_number),
    )


def _signing_material(config: WalletPassConfig, dev: bool):
    if dev:
        return DUMMY_SIGNING_MATERIAL
    try:
        return config.load_signing_material()
    except (ValueError, OSError) as e:
        raise click.ClickException(str(e))


def _run_build(config: WalletPassConfig, descriptor: PassDescriptor, images: dict, out: str, dev: bool):
    material = _signing_material(config, dev)
    builder = PkPassBuilder(signature_engine=SignatureEngine.from_config(config))

    try:
        result = builder.build(descriptor, images, material, out)
    except ImageError as e:
        for role, errors in e.failures.items():
            for error in errors:
                click.echo(f'  - {role}: {error}', err=True)
        raise click.ClickException('Image validation failed')
    except SigningError as e:
        for strategy, message in e.attempts:
            click.echo(f'  - {strategy}: {message}', err=True)
        raise click.ClickException(str(e))
    except PassBuildError as e:
        raise click.ClickException(str(e))

    click.echo(f'Generated .pkpass file: {result.path}')
    click.echo(f'  Size: {result.size} bytes')
    click.echo(f'  Files: {len(result.manifest_hashes)}')
    click.echo(f'  Signed with: {result.signing_strategy}')
    for warning in result.warnings:
        click.echo(f'  Warning: {warning}')
    if dev or config.dev_mode:
        click.echo('Development mode: this pass will not work on real devices')
    return result


@click.group()
@click.option('--log-level', default=None, help='Console log level (defaults to WALLET_LOG_LEVEL)')
@click.option('--log-file', default=None, type=click.Path(dir_okay=False), help='Also log to a rotating file')
@click.pass_context
def wallet(ctx, log_level, log_file):
    """Apple Wallet .pkpass build and validation commands."""
    try:
        config = WalletPassConfig()
    except ValueError as e:
        raise click.ClickException(str(e))
    configure_logging(log_level or config.log_level, log_file)
    ctx.obj = config


@wallet.command()
@click.option('--descriptor', 'descriptor_path', required=True, type=click.Path(exists=True, dir_okay=False),
              help='pass.json style descriptor file')
@click.option('--images', 'images_dir', required=True, type=click.Path(exists=True, file_okay=False),
              help='Directory of PNG images named by role (icon.png, icon@2x.png, ...)')
@click.option('--out', default=None, help='Output .pkpass file path')
@click.option('--serial', default=None, help='Override the descriptor serial number')
@click.option('--resize', is_flag=True, help='Resize images to their recommended size first')
@click.option('--dev', is_flag=True, help='Use a placeholder signature (development only)')
@click.pass_obj
def build(config, descriptor_path, images_dir, out, serial, resize, dev):
    """Build a .pkpass from a descriptor and an image directory."""
    try:
        with open(descriptor_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except ValueError as e:
        raise click.ClickException(f'Could not parse {descriptor_path}: {e}')
    if not isinstance(data, dict):
        raise click.ClickException(f'{descriptor_path} must contain a JSON object')

    descriptor = PassDescriptor.from_pass_json(data)
    if serial:
        descriptor.serial_number = serial

    try:
        images = load_images(images_dir, resize=resize)
    except ValueError as e:
        raise click.ClickException(str(e))

    out = out or os.path.join(config.output_dir, f'{descriptor.serial_number or "pass"}.pkpass')
    _run_build(config, descriptor, images, out, dev)


@wallet.command()
@click.argument('archive', type=click.Path(dir_okay=False))
@click.option('--verify-signature', is_flag=True, help='Also check manifest digests and the signature')
@click.pass_context
def validate(ctx, archive, verify_signature):
    """Check the structure of a .pkpass file."""
    click.echo(f'Validating .pkpass file: {archive}')

    errors = list(validate_pkpass_archive(archive).errors)
    if verify_signature and not errors:
        errors.extend(verify_pkpass_signature(archive))

    if errors:
        click.echo('.pkpass file is invalid:')
        for error in errors:
            click.echo(f'  - {error}')
        ctx.exit(1)

    click.echo('.pkpass file is valid')


@wallet.command('make-sample')
@click.option('--out', default=None, help='Output .pkpass file path')
@click.option('--dev', is_flag=True, help='Use a placeholder signature (development only)')
@click.option('--deterministic', is_flag=True, help='Use a fixed serial number for reproducible builds')
@click.option('--pass-type-id', default='pass.com.example.sample', show_default=True,
              help='Pass type identifier')
@click.option('--team-id', default='ABCDE12345', show_default=True, help='10 character team identifier')
@click.pass_obj
def make_sample(config, out, dev, deterministic, pass_type_id, team_id):
    """Generate a sample .pkpass with placeholder images."""
    serial_number = DETERMINISTIC_SERIAL if deterministic else str(uuid.uuid4())
    descriptor = sample_descriptor(serial_number, pass_type_id, team_id)
    images = placeholder_images(SAMPLE_IMAGE_ROLES)

    out = out or os.path.join(config.output_dir, 'sample.pkpass')
    click.echo(f'Generating sample pass {serial_number}')
    _run_build(config, descriptor, images, out, dev)


def main():
    wallet()


if __name__ == '__main__':
    main()
