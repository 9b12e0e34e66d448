"""Fare quote endpoints (pre-pooling estimates)."""

from fastapi import APIRouter, HTTPException, Depends
from typing import List, Optional
import logging

from backend.api.schemas import (
    FareQuoteRequest,
    FareBreakdownResponse,
    TimeContextSchema,
    VehicleRecommendationRequest,
    VehicleRecommendationResponse,
)
from backend.core.pricing.fare_quote import (
    DeliveryType,
    PackageType,
    TimeContext,
    TimeOfDay,
    VehicleType,
    WeatherCondition,
    WeightLimitExceededError,
)
from backend.api.routes.pools import get_app_state

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_time_context(schema: Optional[TimeContextSchema]) -> Optional[TimeContext]:
    if schema is None:
        return None
    return TimeContext(
        time_of_day=TimeOfDay(schema.time_of_day.value),
        weather=WeatherCondition(schema.weather.value),
        is_holiday=schema.is_holiday,
    )


@router.post("/fares/quote", response_model=FareBreakdownResponse)
async def quote_fare(request: FareQuoteRequest, app_state=Depends(get_app_state)):
    """Itemized fare for a single delivery."""
    try:
        breakdown = app_state.fare_service.quote(
            distance_km=request.distance_km,
            weight_kg=request.weight_kg,
            vehicle_type=VehicleType(request.vehicle_type.value),
            delivery_type=DeliveryType(request.delivery_type.value),
            time_context=_to_time_context(request.time_context),
            package_type=PackageType(request.package_type.value),
        )
    except WeightLimitExceededError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return FareBreakdownResponse.model_validate(breakdown)


@router.post("/fares/recommendations", response_model=List[VehicleRecommendationResponse])
async def recommend_vehicles(
    request: VehicleRecommendationRequest,
    app_state=Depends(get_app_state),
):
    """Vehicles ranked by suitability, then estimated fare."""
    recommendations = app_state.fare_service.recommend_vehicles(
        weight_kg=request.weight_kg,
        distance_km=request.distance_km,
        time_context=_to_time_context(request.time_context),
    )

    return [
        VehicleRecommendationResponse(
            vehicle_type=r.vehicle_type.value,
            suitable=r.suitable,
            reason=r.reason,
            estimated_fare=r.estimated_fare,
        )
        for r in recommendations
    ]
