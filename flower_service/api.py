"""
FastAPI layer exposing the flower classifier.

Endpoints:
 - GET /health
 - POST /classify          (JSON body with an image URL)
 - POST /classify/upload   (multipart image upload)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import List

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from pydantic import BaseModel, HttpUrl
import requests

from . import config, model_loader
from .errors import DecodeError, ExecutionError, UninitializedError
from .pipeline import Classifier

settings = config.get_settings()
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Any InitializationError propagates and aborts startup.
    app.state.classifier = model_loader.setup()
    yield
    app.state.classifier = None
    model_loader.reset()


app = FastAPI(title="Flower Classification Service", version="0.1.0", lifespan=lifespan)


class ClassifyRequest(BaseModel):
    imageUrl: HttpUrl


class ClassificationOut(BaseModel):
    label: str
    score: float


class ClassifyResponse(BaseModel):
    classifications: List[ClassificationOut]


class PayloadTooLarge(Exception):
    pass


def _get_classifier(request: Request) -> Classifier:
    classifier = getattr(request.app.state, "classifier", None)
    if classifier is None:
        raise UninitializedError("Classifier is not initialized; call setup() first")
    return classifier


def _download_image(url: str) -> bytes:
    limit = settings.max_image_bytes
    with requests.get(url, timeout=(5, settings.request_timeout_seconds), stream=True) as resp:
        resp.raise_for_status()
        chunks = []
        size = 0
        for chunk in resp.iter_content(chunk_size=64 * 1024):
            size += len(chunk)
            if size > limit:
                raise PayloadTooLarge(f"Image exceeds {limit} bytes")
            chunks.append(chunk)
    return b"".join(chunks)


def _classify_bytes(request: Request, image_bytes: bytes) -> ClassifyResponse:
    try:
        results = _get_classifier(request).classify(image_bytes)
    except DecodeError as de:
        raise HTTPException(status_code=400, detail=str(de)) from de
    except UninitializedError as ue:
        logger.critical("Request served before classifier setup: %s", ue)
        raise HTTPException(status_code=503, detail="Classifier is not ready") from ue
    except ExecutionError as ee:
        logger.exception("Flower classification failed: %s", ee)
        raise HTTPException(status_code=500, detail="Classification failed") from ee

    return ClassifyResponse(
        classifications=[ClassificationOut(label=c.label, score=c.score) for c in results]
    )


@app.get("/health")
def health(request: Request):
    return {"status": "ok", "model_loaded": getattr(request.app.state, "classifier", None) is not None}


@app.post("/classify", response_model=ClassifyResponse)
def classify(body: ClassifyRequest, request: Request):
    try:
        image_bytes = _download_image(str(body.imageUrl))
    except PayloadTooLarge as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    except requests.RequestException as exc:
        logger.exception("Failed to download image: %s", exc)
        raise HTTPException(status_code=400, detail="Could not download image") from exc

    return _classify_bytes(request, image_bytes)


@app.post("/classify/upload", response_model=ClassifyResponse)
def classify_upload(request: Request, file: UploadFile = File(...)):
    limit = settings.max_image_bytes
    image_bytes = file.file.read(limit + 1)
    if len(image_bytes) > limit:
        raise HTTPException(status_code=413, detail=f"Image exceeds {limit} bytes")

    return _classify_bytes(request, image_bytes)
