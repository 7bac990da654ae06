"""
CLI unit tests.

These tests verify the click commands:
- make-sample in development mode
- build from a descriptor file and an image directory
- validate with and without signature verification
- configuration errors
"""
import json
import zipfile

import pytest
from click.testing import CliRunner

from wallet_pass.cli import DETERMINISTIC_SERIAL, wallet


@pytest.fixture
def runner(monkeypatch, tmp_path):
    """CliRunner with wallet configuration pointed at the temp directory."""
    monkeypatch.setenv('WALLET_OUTPUT_DIR', str(tmp_path / 'dist'))
    monkeypatch.setenv('WALLET_SIGNING_MODE', 'certificate')
    monkeypatch.setenv('WALLET_CERT_P12_PATH', str(tmp_path / 'missing.p12'))
    monkeypatch.setenv('WALLET_WWDR_PATH', str(tmp_path / 'missing.pem'))
    monkeypatch.delenv('WALLET_OPENSSL_TIMEOUT', raising=False)
    return CliRunner()


@pytest.fixture
def pass_sources(tmp_path, descriptor, valid_images):
    """A descriptor file and an image directory on disk."""
    descriptor_path = tmp_path / 'pass.json'
    descriptor_path.write_text(json.dumps(descriptor.to_pass_json()), encoding='utf-8')
    images_dir = tmp_path / 'images'
    images_dir.mkdir()
    for role, data in valid_images.items():
        (images_dir / f'{role}.png').write_bytes(data)
    (images_dir / 'README.txt').write_text('ignored')
    return {'descriptor': str(descriptor_path), 'images': str(images_dir)}


# =============================================================================
# MAKE-SAMPLE
# =============================================================================

@pytest.mark.unit
class TestMakeSampleCommand:
    """Test the make-sample command."""

    def test_dev_sample_is_built(self, runner, tmp_path):
        """
        GIVEN --dev and --deterministic
        WHEN make-sample runs
        THEN a structurally valid archive with the fixed serial is written
        """
        out = tmp_path / 'sample.pkpass'

        result = runner.invoke(wallet, ['make-sample', '--dev', '--deterministic', '--out', str(out)])

        assert result.exit_code == 0, result.output
        assert 'Generated .pkpass file' in result.output
        assert 'Development mode' in result.output
        with zipfile.ZipFile(out) as zf:
            pass_json = json.loads(zf.read('pass.json'))
        assert pass_json['serialNumber'] == DETERMINISTIC_SERIAL

    def test_default_output_directory(self, runner, tmp_path):
        result = runner.invoke(wallet, ['make-sample', '--dev'])

        assert result.exit_code == 0, result.output
        assert (tmp_path / 'dist' / 'sample.pkpass').exists()

    def test_missing_certificates_fail_without_dev(self, runner):
        result = runner.invoke(wallet, ['make-sample'])

        assert result.exit_code != 0
        assert 'Certificate bundle not found' in result.output

    def test_certificate_mode_signs(self, runner, monkeypatch, tmp_path, certificate_files):
        """
        GIVEN certificate files configured through the environment and no openssl binary
        WHEN make-sample runs
        THEN the in-process strategy signs the pass
        """
        monkeypatch.setenv('WALLET_CERT_P12_PATH', certificate_files['p12'])
        monkeypatch.setenv('WALLET_WWDR_PATH', certificate_files['wwdr'])
        monkeypatch.setenv('WALLET_CERT_PASSWORD', certificate_files['password'])
        monkeypatch.setenv('WALLET_OPENSSL_BIN', str(tmp_path / 'no-openssl'))
        out = tmp_path / 'signed.pkpass'

        result = runner.invoke(wallet, ['make-sample', '--out', str(out)])

        assert result.exit_code == 0, result.output
        assert 'Signed with: in_process' in result.output

        verified = runner.invoke(wallet, ['validate', str(out), '--verify-signature'])
        assert verified.exit_code == 0, verified.output
        assert '.pkpass file is valid' in verified.output


# =============================================================================
# BUILD
# =============================================================================

@pytest.mark.unit
class TestBuildCommand:
    """Test the build command."""

    def test_build_from_files(self, runner, tmp_path, pass_sources):
        out = tmp_path / 'built.pkpass'

        result = runner.invoke(wallet, [
            'build', '--descriptor', pass_sources['descriptor'],
            '--images', pass_sources['images'], '--out', str(out), '--dev',
        ])

        assert result.exit_code == 0, result.output
        assert 'Files: 3' in result.output
        with zipfile.ZipFile(out) as zf:
            assert 'README.txt' not in zf.namelist()

    def test_serial_override(self, runner, tmp_path, pass_sources):
        out = tmp_path / 'built.pkpass'

        result = runner.invoke(wallet, [
            'build', '--descriptor', pass_sources['descriptor'], '--images', pass_sources['images'],
            '--out', str(out), '--serial', 'override-1', '--dev',
        ])

        assert result.exit_code == 0, result.output
        with zipfile.ZipFile(out) as zf:
            assert json.loads(zf.read('pass.json'))['serialNumber'] == 'override-1'

    def test_bad_image_reports_each_failure(self, runner, tmp_path, pass_sources, png_factory):
        """
        GIVEN an icon of the wrong size in the image directory
        WHEN build runs
        THEN the command fails and prints the image error
        """
        with open(f"{pass_sources['images']}/icon.png", 'wb') as f:
            f.write(png_factory(30, 30))

        result = runner.invoke(wallet, [
            'build', '--descriptor', pass_sources['descriptor'],
            '--images', pass_sources['images'], '--out', str(tmp_path / 'x.pkpass'), '--dev',
        ])

        assert result.exit_code != 0
        assert 'icon must be exactly 29x29 pixels, got 30x30' in result.output
        assert not (tmp_path / 'x.pkpass').exists()

    def test_resize_fixes_wrong_icon_size(self, runner, tmp_path, pass_sources, png_factory):
        with open(f"{pass_sources['images']}/icon.png", 'wb') as f:
            f.write(png_factory(64, 64))

        result = runner.invoke(wallet, [
            'build', '--descriptor', pass_sources['descriptor'], '--images', pass_sources['images'],
            '--out', str(tmp_path / 'x.pkpass'), '--resize', '--dev',
        ])

        assert result.exit_code == 0, result.output

    def test_unparsable_descriptor(self, runner, tmp_path, pass_sources):
        bad = tmp_path / 'bad.json'
        bad.write_text('{not json')

        result = runner.invoke(wallet, [
            'build', '--descriptor', str(bad), '--images', pass_sources['images'], '--dev',
        ])

        assert result.exit_code != 0
        assert 'Could not parse' in result.output


# =============================================================================
# VALIDATE
# =============================================================================

@pytest.mark.unit
class TestValidateCommand:
    """Test the validate command."""

    def test_valid_archive(self, runner, tmp_path):
        out = tmp_path / 'sample.pkpass'
        runner.invoke(wallet, ['make-sample', '--dev', '--out', str(out)])

        result = runner.invoke(wallet, ['validate', str(out)])

        assert result.exit_code == 0, result.output
        assert '.pkpass file is valid' in result.output

    def test_dummy_signature_fails_verification(self, runner, tmp_path):
        out = tmp_path / 'sample.pkpass'
        runner.invoke(wallet, ['make-sample', '--dev', '--out', str(out)])

        result = runner.invoke(wallet, ['validate', str(out), '--verify-signature'])

        assert result.exit_code == 1
        assert 'development placeholder' in result.output

    def test_unexpected_member(self, runner, tmp_path):
        out = tmp_path / 'sample.pkpass'
        runner.invoke(wallet, ['make-sample', '--dev', '--out', str(out)])
        with zipfile.ZipFile(out, 'a') as zf:
            zf.writestr('notes.txt', 'hello')

        result = runner.invoke(wallet, ['validate', str(out)])

        assert result.exit_code == 1
        assert 'Unexpected file: notes.txt' in result.output
        assert '.pkpass file is valid' not in result.output


# =============================================================================
# CONFIGURATION
# =============================================================================

@pytest.mark.unit
class TestCliConfiguration:
    """Test configuration handling at the CLI boundary."""

    def test_invalid_timeout_is_reported(self, runner, monkeypatch):
        monkeypatch.setenv('WALLET_OPENSSL_TIMEOUT', 'soon')

        result = runner.invoke(wallet, ['make-sample', '--dev'])

        assert result.exit_code != 0
        assert 'WALLET_OPENSSL_TIMEOUT must be a number' in result.output

    def test_wrongly_typed_descriptor_is_reported(self, runner, tmp_path, pass_sources):
        """
        GIVEN a descriptor file whose teamIdentifier is a number
        WHEN build runs
        THEN the command fails with the descriptor error and no traceback
        """
        with open(pass_sources['descriptor'], encoding='utf-8') as f:
            data = json.load(f)
        data['teamIdentifier'] = 1234567890
        with open(pass_sources['descriptor'], 'w', encoding='utf-8') as f:
            json.dump(data, f)

        result = runner.invoke(wallet, [
            'build', '--descriptor', pass_sources['descriptor'],
            '--images', pass_sources['images'], '--out', str(tmp_path / 'x.pkpass'), '--dev',
        ])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert 'teamIdentifier must be a string' in result.output
