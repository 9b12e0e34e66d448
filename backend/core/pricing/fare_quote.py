"""Customer-facing fare quotes.

Independent of the pooling engine's internal cost model: quotes are shown
to customers before pooling and use per-vehicle rate tables, surcharges,
fees and taxes. The two models serve different purposes and are not unified.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
import logging
import math

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up."""
    return int(math.floor(value + 0.5))


class VehicleType(str, Enum):
    BIKE = "bike"
    AUTO = "auto"
    MINI_TRUCK = "mini-truck"
    PICKUP = "pickup"


class DeliveryType(str, Enum):
    EXPRESS = "EXPRESS"
    POOL = "POOL"


class TimeOfDay(str, Enum):
    PEAK = "peak"
    NORMAL = "normal"
    NIGHT = "night"


class WeatherCondition(str, Enum):
    NORMAL = "normal"
    RAIN = "rain"
    HEAVY_RAIN = "heavy-rain"


class PackageType(str, Enum):
    NORMAL = "normal"
    FRAGILE = "fragile"
    HAZARDOUS = "hazardous"


class WeightLimitExceededError(ValueError):
    """Package weight above the vehicle's capacity."""


@dataclass
class TimeContext:
    """Time and weather conditions a quote is priced under."""

    time_of_day: TimeOfDay = TimeOfDay.NORMAL
    weather: WeatherCondition = WeatherCondition.NORMAL
    is_holiday: bool = False


@dataclass
class FareConfig:
    """Rate tables for fare quotes (INR)."""

    base_fares: Dict[str, float] = field(default_factory=lambda: {
        "bike": 30, "auto": 50, "mini-truck": 200, "pickup": 400,
    })
    per_km_rates: Dict[str, float] = field(default_factory=lambda: {
        "bike": 8, "auto": 12, "mini-truck": 25, "pickup": 35,
    })
    max_weights_kg: Dict[str, float] = field(default_factory=lambda: {
        "bike": 10, "auto": 50, "mini-truck": 500, "pickup": 1000,
    })
    weight_rates: Dict[str, float] = field(default_factory=lambda: {
        "bike": 2.0, "auto": 1.5, "mini-truck": 1.0, "pickup": 0.8,
    })
    free_weight_kg: Dict[str, float] = field(default_factory=lambda: {
        "bike": 5, "auto": 10, "mini-truck": 50, "pickup": 100,
    })
    maintenance_costs: Dict[str, float] = field(default_factory=lambda: {
        "bike": 10, "auto": 15, "mini-truck": 30, "pickup": 50,
    })
    fuel_efficiency_km_per_liter: Dict[str, float] = field(default_factory=lambda: {
        "bike": 40, "auto": 15, "mini-truck": 8, "pickup": 6,
    })
    average_speeds_kmh: Dict[str, Dict[str, float]] = field(default_factory=lambda: {
        "bike": {"peak": 20, "normal": 30, "night": 35},
        "auto": {"peak": 18, "normal": 25, "night": 30},
        "mini-truck": {"peak": 15, "normal": 20, "night": 25},
        "pickup": {"peak": 12, "normal": 18, "night": 22},
    })

    maintenance_threshold_km: float = 20.0
    time_surcharges: Dict[str, float] = field(default_factory=lambda: {
        "peak": 0.25, "normal": 0.0, "night": 0.15,
    })
    weather_surcharges: Dict[str, float] = field(default_factory=lambda: {
        "normal": 0.0, "rain": 0.10, "heavy-rain": 0.20,
    })
    holiday_surcharge: float = 0.15

    fuel_price_per_liter: float = 105.0
    fuel_cost_share: float = 0.30
    toll_threshold_km: float = 15.0
    toll_per_10_km: float = 25.0

    pool_discount: float = 0.40
    platform_fee: float = 0.12
    tax_rate: float = 0.05


@dataclass
class FareBreakdown:
    """Itemized customer fare."""

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


@dataclass
class VehicleRecommendation:
    vehicle_type: VehicleType
    suitable: bool
    reason: str
    estimated_fare: int


class FareQuoteService:
    """Computes fare breakdowns and vehicle recommendations."""

    def __init__(self, config: Optional[FareConfig] = None):
        self.config = config or FareConfig()

    def quote(
        self,
        distance_km: float,
        weight_kg: float,
        vehicle_type: VehicleType,
        delivery_type: DeliveryType = DeliveryType.EXPRESS,
        time_context: Optional[TimeContext] = None,
        package_type: PackageType = PackageType.NORMAL,
    ) -> FareBreakdown:
        """Calculate comprehensive fare breakdown.

        Args:
            distance_km: Trip distance
            weight_kg: Package weight
            vehicle_type: Vehicle class the trip is priced for
            delivery_type: EXPRESS or POOL (pool gets the discount)
            time_context: Time-of-day, weather and holiday conditions
            package_type: Handling category

        Returns:
            FareBreakdown

        Raises:
            WeightLimitExceededError: weight above the vehicle's maximum
        """
        ctx = time_context or TimeContext()
        vtype = VehicleType(vehicle_type).value
        cfg = self.config

        base_fare = cfg.base_fares[vtype]
        distance_cost = distance_km * cfg.per_km_rates[vtype]
        weight_cost = self._weight_cost(weight_kg, vtype)
        vehicle_cost = (
            cfg.maintenance_costs[vtype]
            if distance_km > cfg.maintenance_threshold_km else 0.0
        )

        # Surcharges scale with the distance cost
        time_surcharge = distance_cost * cfg.time_surcharges.get(TimeOfDay(ctx.time_of_day).value, 0.0)
        weather_surcharge = distance_cost * cfg.weather_surcharges.get(
            WeatherCondition(ctx.weather).value, 0.0
        )
        holiday_surcharge = distance_cost * cfg.holiday_surcharge if ctx.is_holiday else 0.0

        package_handling_fee = self._handling_fee(PackageType(package_type), weight_kg)
        fuel_cost = (
            distance_km / cfg.fuel_efficiency_km_per_liter[vtype]
            * cfg.fuel_price_per_liter * cfg.fuel_cost_share
        )
        toll_charges = (
            math.floor(distance_km / 10) * cfg.toll_per_10_km
            if distance_km > cfg.toll_threshold_km else 0.0
        )

        subtotal = (
            base_fare + distance_cost + weight_cost + vehicle_cost
            + time_surcharge + weather_surcharge + holiday_surcharge
            + package_handling_fee + fuel_cost + toll_charges
        )

        pool_discount = subtotal * cfg.pool_discount if DeliveryType(delivery_type) == DeliveryType.POOL else 0.0
        after_discount = subtotal - pool_discount

        platform_fee = after_discount * cfg.platform_fee
        taxes = after_discount * cfg.tax_rate
        total_fare = after_discount + platform_fee + taxes
        driver_earnings = total_fare - platform_fee - taxes

        return FareBreakdown(
            base_fare=base_fare,
            distance_cost=distance_cost,
            weight_cost=weight_cost,
            vehicle_cost=vehicle_cost,
            time_surcharge=time_surcharge,
            weather_surcharge=weather_surcharge,
            holiday_surcharge=holiday_surcharge,
            package_handling_fee=package_handling_fee,
            fuel_cost=fuel_cost,
            toll_charges=toll_charges,
            pool_discount=pool_discount,
            platform_fee=platform_fee,
            taxes=taxes,
            total_fare=round_half_up(total_fare),
            driver_earnings=round_half_up(driver_earnings),
            estimated_time_minutes=self.estimate_time(distance_km, vtype, ctx.time_of_day),
        )

    def _weight_cost(self, weight_kg: float, vtype: str) -> float:
        free_limit = self.config.free_weight_kg[vtype]
        if weight_kg <= free_limit:
            return 0.0

        max_weight = self.config.max_weights_kg[vtype]
        if weight_kg > max_weight:
            raise WeightLimitExceededError(
                f"Weight {weight_kg}kg exceeds maximum capacity of {max_weight}kg for {vtype}"
            )

        return (weight_kg - free_limit) * self.config.weight_rates[vtype]

    def _handling_fee(self, package_type: PackageType, weight_kg: float) -> float:
        if package_type == PackageType.FRAGILE:
            return max(20.0, weight_kg * 2)
        if package_type == PackageType.HAZARDOUS:
            return max(50.0, weight_kg * 5)
        return 0.0

    def estimate_time(self, distance_km: float, vehicle_type: VehicleType, time_of_day: TimeOfDay) -> int:
        """Travel time at the vehicle's average speed plus a handling buffer."""
        vtype = VehicleType(vehicle_type).value
        speed = self.config.average_speeds_kmh.get(vtype, {}).get(TimeOfDay(time_of_day).value, 20)
        travel_minutes = distance_km / speed * 60
        buffer_minutes = 10 if vtype == VehicleType.BIKE.value else 15
        return round_half_up(travel_minutes + buffer_minutes)

    def recommend_vehicles(
        self,
        weight_kg: float,
        distance_km: float,
        time_context: Optional[TimeContext] = None,
    ) -> List[VehicleRecommendation]:
        """Rank vehicles: suitable first, then by estimated fare."""
        recommendations = []

        for vehicle_type in VehicleType:
            vtype = vehicle_type.value
            max_weight = self.config.max_weights_kg[vtype]
            free_limit = self.config.free_weight_kg[vtype]
            suitable = weight_kg <= max_weight

            if not suitable:
                reason = f"Exceeds weight capacity ({max_weight:g}kg)"
            elif weight_kg <= free_limit:
                reason = "No extra weight charges"
            else:
                extra = weight_kg - free_limit
                reason = f"Extra ₹{extra * self.config.weight_rates[vtype]:.0f} for {extra:g}kg"

            estimated_fare = 0
            if suitable:
                estimated_fare = self.quote(
                    distance_km, weight_kg, vehicle_type, time_context=time_context
                ).total_fare

            recommendations.append(VehicleRecommendation(
                vehicle_type=vehicle_type,
                suitable=suitable,
                reason=reason,
                estimated_fare=estimated_fare,
            ))

        return sorted(recommendations, key=lambda r: (not r.suitable, r.estimated_fare))


def time_category(timestamp: datetime) -> TimeOfDay:
    """Peak 8-10h and 17-20h, night 22-6h, otherwise normal."""
    hour = timestamp.hour
    if 8 <= hour <= 10 or 17 <= hour <= 20:
        return TimeOfDay.PEAK
    if hour >= 22 or hour <= 6:
        return TimeOfDay.NIGHT
    return TimeOfDay.NORMAL


def is_holiday(timestamp: datetime) -> bool:
    """Weekends count as holidays."""
    return timestamp.weekday() >= 5


def time_context_for(timestamp: datetime, weather: WeatherCondition = WeatherCondition.NORMAL) -> TimeContext:
    return TimeContext(
        time_of_day=time_category(timestamp),
        weather=weather,
        is_holiday=is_holiday(timestamp),
    )
