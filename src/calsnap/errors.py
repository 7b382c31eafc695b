"""
Calsnap error taxonomy.

Only InputValidationError and OracleError ever reach the HTTP boundary.
PageFetchError, ParseError and SerializationError are recovered inside the
component that raises them.
"""


class CalsnapError(Exception):
    """Base class for all pipeline errors."""


class InputValidationError(CalsnapError):
    """A required request field is missing, empty or malformed."""


class FileTooLargeError(InputValidationError):
    """Uploaded file data exceeds the configured size limit."""


class UpstreamFetchError(CalsnapError):
    """A remote call (page fetch or oracle) failed."""


class PageFetchError(UpstreamFetchError):
    """The source web page could not be fetched."""


class OracleError(UpstreamFetchError):
    """The extraction oracle could not produce a response."""

    kind = "oracle"


class UploadInitError(OracleError):
    kind = "upload-init"


class UploadTransferError(OracleError):
    kind = "upload-transfer"


class MediaProcessingError(OracleError):
    kind = "processing-failed"


class MediaProcessingTimeout(OracleError):
    kind = "processing-timeout"


class GenerationError(OracleError):
    kind = "generation"


class ParseError(CalsnapError):
    """Oracle text did not contain recoverable JSON."""


class SerializationError(CalsnapError):
    """A calendar builder could not produce a document."""
