"""
Health check endpoint.
GET /health - Returns 200 if a storage backend answers, 503 otherwise.
"""

import logging
import time
from typing import Any

from fastapi import APIRouter, Depends, Response, status

from apps.api.dependencies import get_storage
from packages.shared.storage import FailoverStorage, StorageBackend

logger = logging.getLogger(__name__)

router = APIRouter()

PROBE_KEY = "health/probe"


def _probe(backend: StorageBackend) -> float:
    """Run an existence lookup and return its latency in ms. Raises on failure."""
    start = time.perf_counter()
    backend.exists(PROBE_KEY)
    return round((time.perf_counter() - start) * 1000, 2)


@router.get("/health")
def health_check(
    response: Response,
    storage: StorageBackend = Depends(get_storage),
) -> dict[str, Any]:
    """
    Health check endpoint.

    A FailoverStorage is probed per side, since its own exists() hides
    errors from either backend.

    Returns:
        200 + {"status": "ok", ...} if every probed backend answers
        200 + {"status": "degraded", ...} if only some of them answer
        503 + {"status": "degraded", ...} if none of them answer
    """
    result: dict[str, Any] = {
        "status": "ok",
        "api": "ok",
        "storage": "ok",
        "storage_backend": storage.backend_name,
    }

    if isinstance(storage, FailoverStorage):
        targets = {"primary": storage.primary, "fallback": storage.fallback}
    else:
        targets = {"": storage}

    failures = 0
    for role, backend in targets.items():
        prefix = f"storage_{role}" if role else "storage"
        try:
            latency = _probe(backend)
            if role:
                result[prefix] = "ok"
            result[f"{prefix}_latency_ms"] = latency
        except Exception as e:
            logger.warning(f"Storage health check failed for {backend.backend_name}: {e}")
            result[prefix] = "fail"
            failures += 1

    if failures:
        result["status"] = "degraded"
    if failures == len(targets):
        result["storage"] = "fail"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return result
