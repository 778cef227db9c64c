# services/metadata/errors.py


class MetadataError(Exception):
    """Base class for metadata enrichment failures."""
    pass


class ExtractionError(MetadataError):
    """Raised when the uploaded bytes cannot be parsed as a PDF."""
    pass


class RegistryLookupError(MetadataError, LookupError):
    """Raised when the DOI registry is unreachable or returns an unusable response."""
    pass


class ConfigurationError(MetadataError):
    """Raised when the completion service credential is not configured."""
    pass


class CompletionError(MetadataError):
    """Raised when the completion request fails or returns no content."""
    pass


class ParseError(MetadataError):
    """Raised when the completion reply is not the expected JSON record."""
    pass
