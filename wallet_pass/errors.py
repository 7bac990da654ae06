# wallet_pass/errors.py

"""
Wallet Pass Errors

Validation errors (descriptor, image) carry every problem found so a caller
can fix them in one pass. Signing and packaging errors abort the build.
"""

from typing import Dict, List, Optional, Sequence, Tuple


class PassBuildError(Exception):
    """Base class for every error raised by the pass-archive pipeline."""


class DescriptorError(PassBuildError):
    """The pass descriptor violates one or more structural rules."""

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__(f"Invalid pass.json: {', '.join(self.errors)}")


class MissingRequiredImageError(PassBuildError):
    """A mandatory image role was not provided at all."""

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(
            'Missing required images: '
            + ', '.join(f'{role} image is required' for role in self.missing)
        )


class ImageError(PassBuildError):
    """
    One or more images failed hard validation.

    Attributes:
        failures: role -> list of hard errors for that image
        warnings: role -> list of soft warnings (informational only)
    """

    def __init__(self, failures: Dict[str, List[str]], warnings: Optional[Dict[str, List[str]]] = None):
        self.failures = dict(failures)
        self.warnings = dict(warnings or {})
        details = '; '.join(
            f"Invalid {role} image: {', '.join(errors)}"
            for role, errors in self.failures.items()
        )
        super().__init__(details)

    @property
    def errors(self) -> List[str]:
        return [error for errors in self.failures.values() for error in errors]


class SigningError(PassBuildError):
    """
    Producing the detached signature failed.

    Attributes:
        strategy: name of the strategy that raised the final error
        attempts: (strategy, message) for every strategy tried, in order
    """

    def __init__(self, strategy: str, message: str, attempts: Optional[List[Tuple[str, str]]] = None):
        self.strategy = strategy
        self.message = message
        self.attempts = list(attempts or [(strategy, message)])
        super().__init__(f'{strategy} signing failed: {message}')


class PackagingError(PassBuildError):
    """Writing the workspace or the archive to disk failed."""


class ArchiveStructureError(PassBuildError):
    """A .pkpass archive is missing required entries or carries unexpected ones."""

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__(f"Invalid .pkpass archive: {'; '.join(self.errors)}")
