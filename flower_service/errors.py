"""
Exception hierarchy for the flower classifier.

Initialization failures are fatal to startup. Decode and execution failures
are per-request and reach the caller unchanged. `UninitializedError` signals
a deployment bug: something called `classify` before `setup` finished.
"""

from __future__ import annotations


class FlowerServiceError(Exception):
    """Base class for every error raised by this package."""


class InitializationError(FlowerServiceError, RuntimeError):
    """The bundled model could not be turned into a runnable plan."""


class ModelDecodeError(InitializationError):
    """Model bytes are not a valid ONNX model."""


class ModelCompileError(InitializationError):
    """The ONNX graph could not be compiled (e.g. unsupported operator)."""


class DecodeError(FlowerServiceError, ValueError):
    """Input bytes are not a decodable image."""


class ExecutionError(FlowerServiceError, RuntimeError):
    """The inference run itself failed."""


class UninitializedError(FlowerServiceError, RuntimeError):
    """`classify` was called before `setup` completed."""
