"""Assemble files from independently declared, ordered fragments."""

import importlib.metadata
import logging

from concat_file.core.exceptions import (
    ConcatFileError,
    ConfigurationError,
    ContentResolutionError,
    InvariantViolationError,
    ManifestError,
    PipelineError,
    ValidationError,
)
from concat_file.core.sources import (
    ContentSource,
    FilesystemContentSource,
    MappingContentSource,
)
from concat_file.core.types import (
    Failure,
    FileResource,
    Fragment,
    ResolvedFragment,
    Result,
    Success,
    Target,
)
from concat_file.catalog import Catalog, CompileReport
from concat_file.executor import ConcatExecutor, create_executor
from concat_file.manifest import Manifest, load_manifest
from concat_file.sync import ResourceGraph, SyncAdapter, TargetState
from concat_file.telemetry import TelemetryContext, TelemetryReporter

try:
    __version__ = importlib.metadata.version("concat-file")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Avoid 'No handler found' warnings when the application configures no logging.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Executor
    "ConcatExecutor",
    "create_executor",
    # Two-phase sync
    "SyncAdapter",
    "TargetState",
    "ResourceGraph",
    "Catalog",
    "CompileReport",
    # Declarations
    "Target",
    "Fragment",
    "ResolvedFragment",
    "FileResource",
    "Manifest",
    "load_manifest",
    # Content sources
    "ContentSource",
    "FilesystemContentSource",
    "MappingContentSource",
    # Result types
    "Result",
    "Success",
    "Failure",
    # Telemetry
    "TelemetryContext",
    "TelemetryReporter",
    # Exceptions
    "ConcatFileError",
    "ValidationError",
    "ConfigurationError",
    "ContentResolutionError",
    "ManifestError",
    "PipelineError",
    "InvariantViolationError",
]
