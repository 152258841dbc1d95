"""Health check endpoints.

- /health: liveness, always 200 while the process runs
- /healthz: component status for storage and the vector index
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from backend.tenderwriter.api.dependencies import ServiceContainer, get_container

router = APIRouter()


async def check_storage(container: ServiceContainer) -> tuple[bool, str]:
    """Check the document repository responds.

    Returns:
        (is_ok, status_message)
    """
    try:
        await container.repository.list_documents()
        return (True, "ok")
    except Exception as e:
        return (False, f"error: {type(e).__name__}")


async def check_index(container: ServiceContainer) -> tuple[bool, str]:
    """Check the vector index is initialized.

    Returns:
        (is_ok, status_message)
    """
    try:
        await container.index.ensure_ready()
        return (True, f"ok ({await container.index.count()} vectors)")
    except Exception as e:
        return (False, f"error: {type(e).__name__}")


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> dict[str, Any] | JSONResponse:
    """Component health check.

    Returns:
        200 with component status if storage and index are ok
        503 if either fails
    """
    storage_ok, storage_status = await check_storage(container)
    index_ok, index_status = await check_index(container)
    core_ok = storage_ok and index_ok

    response_body = {
        "status": "ok" if core_ok else "degraded",
        "components": {
            "storage": storage_status,
            "index": index_status,
            "completion": type(container.completion).__name__,
        },
    }

    if not core_ok:
        return JSONResponse(
            content=response_body, status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )

    return response_body
