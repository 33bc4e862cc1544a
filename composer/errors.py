"""
Errors raised while composing a cover/code/QR image.

Every error ends the current composition attempt. Nothing is retried;
the caller surfaces the message and the user triggers a new attempt.
"""


class CompositionError(Exception):
    """Base class for all composition failures."""


class InvalidDimensions(CompositionError):
    """Target width/height is zero, negative or not a number."""


class ImageLoadError(CompositionError):
    """A source image could not be fetched or decoded."""


class CodeGenerationError(CompositionError):
    """The QR code or scannable code image could not be produced."""


class NoSelection(CompositionError):
    """A composition was requested without a selected catalog item."""
