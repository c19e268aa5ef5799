"""
Versioned document engine: version store, lifecycle, chat binding,
streamed generation and the publication state machine.
"""
from docengine.documents.errors import (
    DocumentError,
    GenerationCancelled,
    GenerationServiceError,
    InvalidStateError,
    NoValidSourceError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from docengine.documents.generation import (
    CompletionStreamPort,
    GenerationPipeline,
    GenerationRequest,
    GenerationResult,
)
from docengine.documents.invalidation import LoggingInvalidator, ViewInvalidatorPort
from docengine.documents.lifecycle import DocumentLifecycle
from docengine.documents.publication import PublicationService
from docengine.documents.session_binding import SessionBinding
from docengine.documents.settings import DocumentSettings
from docengine.documents.sources import KnowledgeSourceResolver, SourceDocument, SourceResolverPort
from docengine.documents.streaming import CancellationToken, TokenChannel
from docengine.documents.version_store import UNSET, VersionStore

__all__ = [
    "DocumentError",
    "GenerationCancelled",
    "GenerationServiceError",
    "InvalidStateError",
    "NoValidSourceError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
    "CompletionStreamPort",
    "GenerationPipeline",
    "GenerationRequest",
    "GenerationResult",
    "LoggingInvalidator",
    "ViewInvalidatorPort",
    "DocumentLifecycle",
    "PublicationService",
    "SessionBinding",
    "DocumentSettings",
    "KnowledgeSourceResolver",
    "SourceDocument",
    "SourceResolverPort",
    "CancellationToken",
    "TokenChannel",
    "UNSET",
    "VersionStore",
]
