"""Exceptions raised while generating code."""


class GeneratorError(RuntimeError):
    """Base class for conditions that abort a generation run."""


class TypeNotFoundError(GeneratorError):
    """Raised when a type reference has no registry entry."""


class UnsupportedError(GeneratorError):
    """Raised for schema shapes protolite does not generate code for."""


class ValidationError(GeneratorError):
    """Raised when the input descriptors are malformed."""


class OptionError(GeneratorError):
    """Raised when a generator parameter has an invalid value."""
