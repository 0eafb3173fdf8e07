"""FastAPI application exposing the lock endpoints."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from lockhub.app.models import (
    GroupLockRequest,
    GroupUnlockRequest,
    HealthResponse,
    LockRequest,
    LockResponse,
    LockStatusResponse,
    ResourceClass,
    UnlockRequest,
)
from lockhub.core.models import WireModel
from lockhub.core.runtime import LockRuntime
from lockhub.core.settings import ServiceSettings, load_settings
from lockhub.utils.logging import get_logger


logger = get_logger("LockAPI")


def _describe_validation_errors(errors: Sequence[Dict[str, Any]]) -> str:
    messages = []
    for error in errors:
        parts = [str(part) for part in error.get("loc", ()) if part not in ("body", "path", "query")]
        field = ".".join(parts) or "body"
        if error.get("type") == "missing":
            messages.append(f"{field} is required")
        else:
            messages.append(f"{field}: {error.get('msg')}")
    return "; ".join(messages)


def _respond(model: WireModel, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=model.model_dump(mode="json", by_alias=True))


def create_app(settings: Optional[ServiceSettings] = None, *, runtime: Optional[LockRuntime] = None) -> FastAPI:
    runtime = runtime or LockRuntime(settings or load_settings())
    mutex = runtime.mutex
    coordinator = runtime.coordinator

    app = FastAPI(title="lockhub")
    app.state.runtime = runtime

    @app.on_event("startup")
    async def _startup() -> None:
        logger.info("Starting lockhub API with %s store", runtime.settings.store.backend)
        await runtime.start()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await runtime.stop()

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Malformed requests are client errors and never reach the store.
        return JSONResponse(status_code=400, content={"error": _describe_validation_errors(exc.errors())})

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        store = "connected" if await runtime.store_client.check_health() else "disconnected"
        return HealthResponse(status="ok", store=store)

    # Group variants come first so they win over the generic routes for POST.
    @app.post("/lock/company/{company_id}")
    async def lock_company(company_id: str, body: GroupLockRequest) -> JSONResponse:
        result = await coordinator.acquire_group(company_id, body.member_ids, body.holder, body.ttl)
        await runtime.audit(
            "lock_group",
            coordinator.group_key(company_id),
            body.holder,
            result.success,
            failed_member=result.failed_member,
        )
        return _respond(result, 200 if result.success else 409)

    @app.post("/unlock/company/{company_id}")
    async def unlock_company(company_id: str, body: GroupUnlockRequest) -> JSONResponse:
        result = await coordinator.release_group(company_id, body.member_ids, body.holder)
        await runtime.audit(
            "unlock_group",
            coordinator.group_key(company_id),
            body.holder,
            result.group_unlocked,
            members_released=sum(1 for item in result.member_unlocks if item.unlocked),
        )
        return _respond(result)

    @app.post("/lock/{resource_class}/{resource_id}")
    async def lock_resource(resource_class: ResourceClass, resource_id: str, body: LockRequest) -> JSONResponse:
        key = mutex.key_for(resource_class.value, resource_id)
        if body.timeout_ms is not None:
            locked = await runtime.waiter.wait_for_lock(key, body.holder, body.ttl or mutex.default_ttl, body.timeout_ms)
        else:
            locked = await mutex.acquire(key, body.holder, body.ttl)
        await runtime.audit("lock", key, body.holder, locked, waited=body.timeout_ms is not None)
        label = f"{resource_class.value.capitalize()} {resource_id}"
        if locked:
            return _respond(LockResponse(success=True, message=f"{label} locked by {body.holder}"))
        return _respond(LockResponse(success=False, message=f"{label} is already locked"), 409)

    @app.post("/unlock/{resource_class}/{resource_id}")
    async def unlock_resource(resource_class: ResourceClass, resource_id: str, body: UnlockRequest) -> JSONResponse:
        key = mutex.key_for(resource_class.value, resource_id)
        unlocked = await mutex.release(key, body.holder)
        await runtime.audit("unlock", key, body.holder, unlocked)
        label = f"{resource_class.value.capitalize()} {resource_id}"
        if unlocked:
            return _respond(LockResponse(success=True, message=f"{label} unlocked by {body.holder}"))
        return _respond(LockResponse(success=False, message=f"{label} is not locked by {body.holder}"), 403)

    @app.get("/lock/{resource_class}/{resource_id}", response_model=LockStatusResponse)
    async def lock_status(resource_class: ResourceClass, resource_id: str) -> LockStatusResponse:
        status = await mutex.query(mutex.key_for(resource_class.value, resource_id))
        return LockStatusResponse(id=resource_id, locked=status.locked, holder=status.holder)

    return app


# Default ASGI app when run via `uvicorn lockhub.app.main:app`; settings come from LOCKHUB_CONFIG.

config_env = os.getenv("LOCKHUB_CONFIG", "config/lockhub.example.yml")
app = create_app(load_settings(Path(config_env)))
