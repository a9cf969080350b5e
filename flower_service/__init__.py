"""
Flower classification microservice package.

Exposes reusable primitives for compiling the bundled ONNX model,
preprocessing images, ranking predictions, and serving the FastAPI
application.
"""

from .errors import (
    DecodeError,
    ExecutionError,
    FlowerServiceError,
    InitializationError,
    ModelCompileError,
    ModelDecodeError,
    UninitializedError,
)
from .model_loader import CompiledModel, get_classifier, load_model, setup
from .pipeline import Classifier, classify
from .postprocessing import FLOWER_LABELS, Classification

__all__ = [
    "FLOWER_LABELS",
    "Classification",
    "Classifier",
    "CompiledModel",
    "DecodeError",
    "ExecutionError",
    "FlowerServiceError",
    "InitializationError",
    "ModelCompileError",
    "ModelDecodeError",
    "UninitializedError",
    "classify",
    "get_classifier",
    "load_model",
    "setup",
]
