# ================================================================
# FEDORAGRAPH
# Errors raised by the object model
# ================================================================


class FedoraError(RuntimeError):
    """Base class for object model failures."""


class NotFoundError(FedoraError):
    """Raised by a repository when an object, datastream or content is missing."""


class ReadOnlyError(FedoraError):
    """Raised when mutating a historical (as-of) view."""


class ValidationError(FedoraError, ValueError):
    """Raised when an attribute value is outside its allowed set."""


class PreconditionError(FedoraError):
    """Raised when an operation cannot start, e.g. saving without content."""


class UnknownSizeError(PreconditionError):
    """Raised when a datastream byte range is requested without a known size."""


class ParseError(FedoraError):
    """Raised when a profile document is not valid N-Triples."""
