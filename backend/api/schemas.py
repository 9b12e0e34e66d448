"""Pydantic schemas for API request/response validation."""

from datetime import datetime
from typing import List, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum

from backend.core.models.domain import StopType
from backend.core.pooling.events import PoolEventType


# Enums matching domain models
class VehicleTypeEnum(str, Enum):
    BIKE = "bike"
    AUTO = "auto"
    MINI_TRUCK = "mini-truck"
    PICKUP = "pickup"


class DeliveryTypeEnum(str, Enum):
    EXPRESS = "EXPRESS"
    POOL = "POOL"


class TimeOfDayEnum(str, Enum):
    PEAK = "peak"
    NORMAL = "normal"
    NIGHT = "night"


class WeatherConditionEnum(str, Enum):
    NORMAL = "normal"
    RAIN = "rain"
    HEAVY_RAIN = "heavy-rain"


class PackageTypeEnum(str, Enum):
    NORMAL = "normal"
    FRAGILE = "fragile"
    HAZARDOUS = "hazardous"


# Location schemas
class LocationSchema(BaseModel):
    latitude: float
    longitude: float
    address: str = ""

    model_config = ConfigDict(from_attributes=True)


# Pool request schemas
class PoolRequestCreate(BaseModel):
    request_id: Optional[str] = None
    customer_id: str
    pickup: LocationSchema
    dropoff: LocationSchema
    package_weight_kg: float = Field(default=1.0, gt=0)
    max_wait_minutes: float = Field(default=30.0, gt=0)
    created_at: Optional[datetime] = None


class PoolRequestResponse(BaseModel):
    request_id: str
    customer_id: str
    pickup: LocationSchema
    dropoff: LocationSchema
    package_weight_kg: float
    max_wait_minutes: float
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RouteStopSchema(BaseModel):
    request_id: str
    stop_type: StopType
    location: LocationSchema

    model_config = ConfigDict(from_attributes=True)


class PoolResponse(BaseModel):
    pool_id: str
    requests: List[PoolRequestResponse]
    route: List[RouteStopSchema]
    member_count: int
    total_distance_km: float
    estimated_time_minutes: float
    cost_per_customer: float
    savings: float
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PoolAssignmentResponse(BaseModel):
    request_id: str
    pool_id: str
    pool: PoolResponse


class PoolListResponse(BaseModel):
    pools: List[PoolResponse]
    total: int


class PoolEventResponse(BaseModel):
    event_type: PoolEventType
    pool_id: str
    request_id: Optional[str] = None
    pool: Optional[PoolResponse] = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


# Fare schemas
class TimeContextSchema(BaseModel):
    time_of_day: TimeOfDayEnum = TimeOfDayEnum.NORMAL
    weather: WeatherConditionEnum = WeatherConditionEnum.NORMAL
    is_holiday: bool = False


class FareQuoteRequest(BaseModel):
    distance_km: float = Field(ge=0)
    weight_kg: float = Field(gt=0)
    vehicle_type: VehicleTypeEnum
    delivery_type: DeliveryTypeEnum = DeliveryTypeEnum.EXPRESS
    time_context: Optional[TimeContextSchema] = None
    package_type: PackageTypeEnum = PackageTypeEnum.NORMAL


class FareBreakdownResponse(BaseModel):
    base_fare: float
    distance_cost: float
    weight_cost: float
    vehicle_cost: float
    time_surcharge: float
    weather_surcharge: float
    holiday_surcharge: float
    package_handling_fee: float
    fuel_cost: float
    toll_charges: float
    pool_discount: float
    platform_fee: float
    taxes: float
    total_fare: int
    driver_earnings: int
    estimated_time_minutes: int

    model_config = ConfigDict(from_attributes=True)


class VehicleRecommendationRequest(BaseModel):
    weight_kg: float = Field(gt=0)
    distance_km: float = Field(ge=0)
    time_context: Optional[TimeContextSchema] = None


class VehicleRecommendationResponse(BaseModel):
    vehicle_type: VehicleTypeEnum
    suitable: bool
    reason: str
    estimated_fare: int

    model_config = ConfigDict(from_attributes=True)


# Error response schema
class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)


# Health check schema
class HealthResponse(BaseModel):
    status: str
    timestamp: datetime = Field(default_factory=datetime.now)
    version: str = "1.0.0"
    components: Dict[str, str]
