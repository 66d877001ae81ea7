"""Exception hierarchy for gostman-interchange.

All exceptions inherit from :class:`InterchangeError`. Import functions
convert them into a failed :class:`~gostman_interchange.formats.base.ImportOutcome`
instead of letting them escape, and the CLI turns them into a non-zero exit.

Subclass hierarchy::

    InterchangeError
    +-- MalformedInputError     (not valid JSON/YAML, or wrong envelope shape)
    +-- UnsupportedFormatError  (unknown import/export format identifier)
"""


class InterchangeError(Exception):
    """Base exception for all interchange errors."""


class MalformedInputError(InterchangeError):
    """Raised when input text cannot be parsed or has the wrong shape."""


class UnsupportedFormatError(InterchangeError):
    """Raised when a format identifier has no matching importer or exporter.

    Args:
        fmt: The offending format identifier.
    """

    def __init__(self, fmt: str):
        self.format = fmt
        super().__init__(f'Format "{fmt}" is not supported.')
