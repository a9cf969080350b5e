"""
Model loading utilities for the flower CNN.

The loader:
 - reads the ONNX model bundled with the package,
 - decodes and checks it with `onnx`,
 - compiles it into a fully optimized ONNX Runtime session on CPU,
 - keeps a single shared classifier for the process via `setup()`.

An `InferenceSession` is safe to `run` from several threads at once, so the
compiled model is shared read-only rather than kept per thread.
"""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
import logging
from threading import Lock
from typing import Optional, TYPE_CHECKING

import numpy as np
import onnx
import onnxruntime as ort
from google.protobuf.message import DecodeError as ProtobufDecodeError

from . import config
from .errors import ExecutionError, InitializationError, ModelCompileError, ModelDecodeError, UninitializedError

if TYPE_CHECKING:
    from .pipeline import Classifier

logger = logging.getLogger(__name__)

MODEL_RESOURCE = "assets/flower_cnn_model.onnx"

_CLASSIFIER: Optional["Classifier"] = None
_LOCK = Lock()


@dataclass(frozen=True)
class CompiledModel:
    """Read-only handle on an optimized, runnable ONNX graph."""

    session: ort.InferenceSession
    input_name: str

    def run(self, tensor: np.ndarray) -> np.ndarray:
        """Run one forward pass and return the first output as flat float32 logits."""
        try:
            outputs = self.session.run(None, {self.input_name: tensor})
        except Exception as exc:  # noqa: BLE001
            raise ExecutionError(f"Inference failed: {exc}") from exc
        return np.asarray(outputs[0], dtype=np.float32).ravel()


def read_bundled_model() -> bytes:
    """Return the raw bytes of the ONNX model shipped with the package."""
    try:
        return resources.files(__package__).joinpath(*MODEL_RESOURCE.split("/")).read_bytes()
    except OSError as exc:
        raise InitializationError(f"Bundled model {MODEL_RESOURCE} is missing") from exc


def _decode(model_bytes: bytes) -> onnx.ModelProto:
    try:
        proto = onnx.load_model_from_string(model_bytes)
        onnx.checker.check_model(proto)
    except (ProtobufDecodeError, onnx.checker.ValidationError, ValueError) as exc:
        raise ModelDecodeError(f"Model bytes are not a valid ONNX model: {exc}") from exc
    return proto


def _session_options(settings: config.Settings) -> ort.SessionOptions:
    options = ort.SessionOptions()
    options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
    if settings.ort_intra_op_threads:
        options.intra_op_num_threads = settings.ort_intra_op_threads
    return options


def load_model(model_bytes: bytes) -> CompiledModel:
    """
    Decode ONNX bytes and compile them into a runnable plan.

    Raises:
        ModelDecodeError: bytes are not a valid ONNX model.
        ModelCompileError: the graph cannot be compiled by ONNX Runtime.
    """
    proto = _decode(model_bytes)
    logger.debug("Decoded ONNX model: ir_version=%s opsets=%s", proto.ir_version, [op.version for op in proto.opset_import])
    settings = config.get_settings()
    try:
        session = ort.InferenceSession(
            model_bytes,
            sess_options=_session_options(settings),
            providers=["CPUExecutionProvider"],
        )
    except Exception as exc:  # noqa: BLE001
        raise ModelCompileError(f"Could not compile ONNX graph: {exc}") from exc

    inputs = session.get_inputs()
    if len(inputs) != 1:
        raise ModelCompileError(f"Expected a single model input, found {len(inputs)}")
    logger.info("Compiled ONNX model: input=%s shape=%s", inputs[0].name, inputs[0].shape)
    return CompiledModel(session=session, input_name=inputs[0].name)


def setup() -> "Classifier":
    """
    Compile the bundled model and install it as the shared classifier.

    Call once at startup; calling again recompiles and replaces the instance.
    """
    global _CLASSIFIER
    from .pipeline import Classifier

    with _LOCK:
        _CLASSIFIER = Classifier(load_model(read_bundled_model()))
        logger.info("Flower classifier ready")
    return _CLASSIFIER


def get_classifier() -> "Classifier":
    """Return the shared classifier, failing loudly if `setup()` never ran."""
    classifier = _CLASSIFIER
    if classifier is None:
        raise UninitializedError("Classifier is not initialized; call setup() first")
    return classifier


def is_initialized() -> bool:
    return _CLASSIFIER is not None


def reset() -> None:
    """Drop the shared classifier (used by tests and shutdown hooks)."""
    global _CLASSIFIER
    with _LOCK:
        _CLASSIFIER = None
