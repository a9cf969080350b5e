"""
Image loading and preprocessing for the flower CNN.

The network was trained on 128x128 RGB crops normalized with ImageNet
statistics, laid out channel-first.
"""

from __future__ import annotations

from io import BytesIO

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import DecodeError

IMG_SIZE = 128
IMAGENET_MEAN = np.array([0.485, 0.456, 0.406], dtype=np.float32)
IMAGENET_STD = np.array([0.229, 0.224, 0.225], dtype=np.float32)


# Pillow clips these to 255 on convert("RGB") instead of rescaling.
_HIGH_DEPTH_GRAY_MODES = {"I", "I;16", "I;16B", "I;16L", "I;16N"}


def _scale_to_8bit(image: Image.Image) -> Image.Image:
    pixels = np.clip(np.asarray(image, dtype=np.int64), 0, 65535) >> 8
    return Image.fromarray(pixels.astype(np.uint8))


def decode_image(image_bytes: bytes) -> Image.Image:
    """Decode any Pillow-supported format into an RGB image."""
    if not image_bytes:
        raise DecodeError("Empty image data")
    try:
        image = Image.open(BytesIO(image_bytes))
        image.load()
        if image.mode in _HIGH_DEPTH_GRAY_MODES:
            image = _scale_to_8bit(image)
        return image.convert("RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
        raise DecodeError("Invalid image data") from exc


def image_to_tensor(image_bytes: bytes) -> np.ndarray:
    """
    Decode, resize to IMG_SIZE x IMG_SIZE and normalize.

    Returns a float32 array of shape (1, 3, IMG_SIZE, IMG_SIZE). Bilinear
    resampling in Pillow is a triangle filter, so the result depends only on
    the input bytes.
    """
    image = decode_image(image_bytes)
    image_resized = image.resize((IMG_SIZE, IMG_SIZE), Image.BILINEAR)

    im_np = np.asarray(image_resized).astype("float32") / 255.0
    im_np = (im_np - IMAGENET_MEAN) / IMAGENET_STD
    im_np = np.transpose(im_np, (2, 0, 1))  # HWC -> CHW

    return np.ascontiguousarray(im_np[np.newaxis, ...], dtype=np.float32)
