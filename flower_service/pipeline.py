"""
High-level flower classification pipeline.

`Classifier.classify` is the main entry point used by both the HTTP API and
the local CLI. It keeps orchestration simple:
bytes in -> preprocessing -> ONNX Runtime -> softmax/ranking -> labels out.
"""

from __future__ import annotations

import logging
from typing import List

from .model_loader import CompiledModel, get_classifier, load_model
from .postprocessing import Classification, rank
from .preprocessing import image_to_tensor

logger = logging.getLogger(__name__)


class Classifier:
    """Classifies images with an already compiled model; safe to share across threads."""

    def __init__(self, model: CompiledModel):
        self._model = model

    @classmethod
    def from_bytes(cls, model_bytes: bytes) -> "Classifier":
        return cls(load_model(model_bytes))

    @property
    def model(self) -> CompiledModel:
        return self._model

    def classify(self, image_bytes: bytes) -> List[Classification]:
        """
        Return up to three classifications, best first.

        Raises:
            DecodeError: when the image cannot be decoded.
            ExecutionError: when the inference run fails.
        """
        tensor = image_to_tensor(image_bytes)
        logits = self._model.run(tensor)
        results = rank(logits)
        logger.debug("Classified image (%d bytes): %s", len(image_bytes), results)
        return results


def classify(image_bytes: bytes) -> List[Classification]:
    """Classify with the shared classifier installed by `setup()`."""
    return get_classifier().classify(image_bytes)
