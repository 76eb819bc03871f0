"""Client-side object model for Fedora Commons repositories."""

from fedoragraph.datastream import Datastream
from fedoragraph.digital_object import DigitalObject
from fedoragraph.errors import (
    FedoraError, NotFoundError, ParseError, PreconditionError, ReadOnlyError,
    UnknownSizeError, ValidationError
)
from fedoragraph.graph import Graph
from fedoragraph.logging_config import configure_logging
from fedoragraph.repository import MemoryRepository, Repository

__all__ = [
    "Datastream",
    "DigitalObject",
    "FedoraError",
    "Graph",
    "configure_logging",
    "MemoryRepository",
    "NotFoundError",
    "ParseError",
    "PreconditionError",
    "ReadOnlyError",
    "Repository",
    "UnknownSizeError",
    "ValidationError",
]
