"""Toggle repository: polling loop, events and error taxonomy.

The repository waits for its storage, fetches the feature endpoint with
ETag-conditional requests, validates the document and replaces storage
content, publishing ``DataUpdated`` or ``FetchFailed`` for each cycle.
"""

from src.features.repository.config import RepositoryConfig
from src.features.repository.errors import (
    ErrorKind,
    HttpStatusError,
    PayloadParseError,
    RepositoryError,
    ToggleValidationError,
    TransportError,
)
from src.features.repository.events import (
    DataUpdated,
    FetchFailed,
    Listener,
    Listeners,
    RepositoryEvent,
)
from src.features.repository.metrics import RepositoryMetrics
from src.features.repository.payload import index_by_name, parse_features
from src.features.repository.repository import Repository
from src.features.repository.state_machine import (
    RepositoryState,
    RepositoryStateError,
    RepositoryStateMachine,
)


__all__ = [
    # Repository
    "Repository",
    "RepositoryConfig",
    # State machine
    "RepositoryState",
    "RepositoryStateError",
    "RepositoryStateMachine",
    # Events
    "DataUpdated",
    "FetchFailed",
    "Listener",
    "Listeners",
    "RepositoryEvent",
    # Errors
    "ErrorKind",
    "HttpStatusError",
    "PayloadParseError",
    "RepositoryError",
    "ToggleValidationError",
    "TransportError",
    # Payload
    "index_by_name",
    "parse_features",
    # Metrics
    "RepositoryMetrics",
]
