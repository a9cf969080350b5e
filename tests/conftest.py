# ============================================================================
# Flower Classification Service - Pytest Configuration
# ============================================================================
# Purpose: Shared fixtures (tiny ONNX models, encoded images) for all tests
# ============================================================================

from io import BytesIO

import numpy as np
import onnx
import pytest
from onnx import TensorProto, helper, numpy_helper
from PIL import Image

from flower_service import model_loader

IMG_SIZE = 128
SUNFLOWER_LOGITS = [0.1, 0.1, 0.1, 5.0, 0.1]


def build_constant_logits_model(logits, img_size=IMG_SIZE):
    """
    ONNX graph that ignores pixel values and always emits `logits`.

    input (1,3,H,W) -> Flatten -> MatMul(zeros) -> Add(bias) -> (1, N)
    """
    num_outputs = len(logits)
    features = 3 * img_size * img_size
    weights = numpy_helper.from_array(np.zeros((features, num_outputs), dtype=np.float32), name="W")
    bias = numpy_helper.from_array(np.asarray([logits], dtype=np.float32), name="B")

    graph = helper.make_graph(
        [
            helper.make_node("Flatten", ["input"], ["flat"], axis=1),
            helper.make_node("MatMul", ["flat", "W"], ["mm"]),
            helper.make_node("Add", ["mm", "B"], ["logits"]),
        ],
        "constant_logits",
        [helper.make_tensor_value_info("input", TensorProto.FLOAT, [1, 3, img_size, img_size])],
        [helper.make_tensor_value_info("logits", TensorProto.FLOAT, [1, num_outputs])],
        initializer=[weights, bias],
    )
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8
    return model.SerializeToString()


def build_channel_mean_model(img_size=IMG_SIZE):
    """ONNX graph whose outputs are the per-channel means of the input, (1, 3)."""
    graph = helper.make_graph(
        [
            helper.make_node("ReduceMean", ["input"], ["mean"], axes=[2, 3], keepdims=0),
        ],
        "channel_mean",
        [helper.make_tensor_value_info("input", TensorProto.FLOAT, [1, 3, img_size, img_size])],
        [helper.make_tensor_value_info("mean", TensorProto.FLOAT, [1, 3])],
    )
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8
    return model.SerializeToString()


def build_unsupported_op_model(img_size=IMG_SIZE):
    """ONNX graph using an operator no runtime implements."""
    graph = helper.make_graph(
        [helper.make_node("NoSuchFlowerOp", ["input"], ["out"], domain="com.example.flowers")],
        "unsupported",
        [helper.make_tensor_value_info("input", TensorProto.FLOAT, [1, 3, img_size, img_size])],
        [helper.make_tensor_value_info("out", TensorProto.FLOAT, [1, 5])],
    )
    model = helper.make_model(
        graph,
        opset_imports=[helper.make_opsetid("", 13), helper.make_opsetid("com.example.flowers", 1)],
    )
    model.ir_version = 8
    return model.SerializeToString()


def encode_image(size=(300, 300), color=(250, 200, 20), fmt="JPEG"):
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


# =============================================================================
# Model Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def sunflower_model_bytes():
    return build_constant_logits_model(SUNFLOWER_LOGITS)


@pytest.fixture(scope="session")
def channel_mean_model_bytes():
    return build_channel_mean_model()


@pytest.fixture(scope="session")
def unsupported_model_bytes():
    return build_unsupported_op_model()


@pytest.fixture
def bundled_sunflower_model(monkeypatch, sunflower_model_bytes):
    """Stand the sunflower model in for the packaged asset."""
    monkeypatch.setattr(model_loader, "read_bundled_model", lambda: sunflower_model_bytes)
    yield sunflower_model_bytes
    model_loader.reset()


@pytest.fixture(autouse=True)
def clean_shared_classifier():
    model_loader.reset()
    yield
    model_loader.reset()


# =============================================================================
# Image Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def sunflower_jpeg():
    return encode_image((300, 300), (250, 200, 20), "JPEG")


@pytest.fixture(scope="session")
def tiny_png():
    return encode_image((7, 3), (10, 120, 240), "PNG")
