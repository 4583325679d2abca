"""
Remote Dataset

Local field cache for records whose authoritative values live in a slow,
asynchronous, pay-per-write remote store.

Provides:
- Lazy read-through sync of all fields on first access
- Single-flight deduplication of concurrent syncs
- Batched flushes calling each distinct remote setter once
- Deployed/obsolete lifecycle gating all remote I/O

Usage:

    >>> from remote_dataset import FieldSpec, RemotelyBackedDataset
    >>> dataset = RemotelyBackedDataset.create_instance()
    >>> fields = dataset.bind({"owner": FieldSpec(remote_getter=fetch_owner)})
    >>> dataset.mark_deployed()
    >>> owner = await fields.get("owner")
"""

from .config import DatasetConfig, OptionsCopyMode
from .dataset import BoundFields, RemotelyBackedDataset
from .exceptions import (
    ConfigurationError,
    DatasetBindingError,
    ObsoleteAccessError,
    RemoteDataAccessError,
    RemoteDatasetError,
    RemoteReadError,
    RemoteWriteError,
    UndeployedAccessError,
    UnknownFieldError,
)
from .logging_utils import (
    DatasetLoggerAdapter,
    StructuredJsonFormatter,
    configure_structured_logging,
    get_dataset_logger,
)
from .single_flight import SingleFlight
from .types import FieldSpec, FieldState, OperationHandle

__all__ = [
    # Core
    "RemotelyBackedDataset",
    "BoundFields",
    "FieldSpec",
    "FieldState",
    "OperationHandle",
    "SingleFlight",
    # Configuration
    "DatasetConfig",
    "OptionsCopyMode",
    # Logging
    "StructuredJsonFormatter",
    "configure_structured_logging",
    "get_dataset_logger",
    "DatasetLoggerAdapter",
    # Exceptions
    "RemoteDatasetError",
    "RemoteDataAccessError",
    "ObsoleteAccessError",
    "UndeployedAccessError",
    "RemoteReadError",
    "RemoteWriteError",
    "UnknownFieldError",
    "DatasetBindingError",
    "ConfigurationError",
]

__version__ = "0.1.0"
