"""Exception types shared across the converter."""


class ConvertError(Exception):
    """Base class for all conversion failures."""


class ParseError(ConvertError):
    """A descriptor or index document could not be decoded."""


class ValidationError(ConvertError):
    """A descriptor carries a value that cannot be turned into a pipeline."""


class FetchError(ConvertError):
    """A remote or local resource could not be retrieved."""


class ResolutionError(ConvertError):
    """The resolution set is missing a package the caller said it holds."""


class WriteError(ConvertError):
    """A generated document could not be written out."""
