"""Pool intake and query endpoints."""

from fastapi import APIRouter, HTTPException, Depends, Response
from typing import List
import uuid
import logging

from backend.api.schemas import (
    PoolRequestCreate,
    PoolAssignmentResponse,
    PoolResponse,
    PoolListResponse,
    PoolEventResponse,
)
from backend.core.models.domain import Location, PoolRequest, as_utc, utc_now
from backend.core.pooling import DuplicateRequestError, PoolNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


def get_app_state():
    """Get application state from main app."""
    from backend.api.main import app_state
    return app_state


@router.post("/pools/requests", response_model=PoolAssignmentResponse, status_code=201)
async def create_pool_request(
    request: PoolRequestCreate,
    app_state=Depends(get_app_state),
):
    """Submit a geocoded delivery request for pooling.

    The request joins the first compatible active pool, or starts a new one.
    """
    request_id = request.request_id or f"req_{uuid.uuid4().hex[:10]}"

    pool_request = PoolRequest(
        request_id=request_id,
        customer_id=request.customer_id,
        pickup=Location(**request.pickup.model_dump()),
        dropoff=Location(**request.dropoff.model_dump()),
        package_weight_kg=request.package_weight_kg,
        max_wait_minutes=request.max_wait_minutes,
        created_at=as_utc(request.created_at) if request.created_at else utc_now(),
    )

    try:
        pool_id = app_state.lifecycle.create_request(pool_request)
    except DuplicateRequestError as e:
        raise HTTPException(status_code=409, detail=str(e))

    pool = app_state.engine.require_pool(pool_id)

    return PoolAssignmentResponse(
        request_id=request_id,
        pool_id=pool_id,
        pool=PoolResponse.model_validate(pool),
    )


@router.delete("/pools/requests/{request_id}", status_code=204)
async def cancel_pool_request(request_id: str, app_state=Depends(get_app_state)):
    """Cancel a pooled request."""
    try:
        app_state.lifecycle.cancel_request(request_id)
    except PoolNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return Response(status_code=204)


@router.get("/pools", response_model=PoolListResponse)
async def list_pools(app_state=Depends(get_app_state)):
    """List active pools in first-fit order."""
    pools = app_state.engine.list_active_pools()
    return PoolListResponse(
        pools=[PoolResponse.model_validate(p) for p in pools],
        total=len(pools),
    )


@router.get("/pools/events", response_model=List[PoolEventResponse])
async def drain_pool_events(app_state=Depends(get_app_state)):
    """Pending pool events since the last call."""
    return [
        PoolEventResponse.model_validate(event)
        for event in app_state.event_subscription.drain()
    ]


@router.get("/pools/{pool_id}", response_model=PoolResponse)
async def get_pool(pool_id: str, app_state=Depends(get_app_state)):
    """Get a pool by id."""
    pool = app_state.engine.get_pool(pool_id)
    if pool is None:
        raise HTTPException(status_code=404, detail=f"Pool {pool_id} not found")

    return PoolResponse.model_validate(pool)
