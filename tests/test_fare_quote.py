"""Tests for customer fare quotes."""

from datetime import datetime

import pytest

from backend.core.pricing.fare_quote import (
    DeliveryType,
    FareConfig,
    FareQuoteService,
    PackageType,
    TimeContext,
    TimeOfDay,
    VehicleType,
    WeatherCondition,
    WeightLimitExceededError,
    is_holiday,
    round_half_up,
    time_category,
    time_context_for,
)


@pytest.fixture
def fares():
    return FareQuoteService()


class TestQuote:

    def test_bike_express(self, fares):
        breakdown = fares.quote(10, 3, VehicleType.BIKE)

        assert breakdown.base_fare == 30
        assert breakdown.distance_cost == pytest.approx(80)
        assert breakdown.weight_cost == 0
        assert breakdown.fuel_cost == pytest.approx(7.875)
        assert breakdown.toll_charges == 0
        assert breakdown.pool_discount == 0
        assert breakdown.total_fare == 138
        assert breakdown.driver_earnings == 118
        assert breakdown.estimated_time_minutes == 30

    def test_pool_discount(self, fares):
        express = fares.quote(10, 3, VehicleType.BIKE, DeliveryType.EXPRESS)
        pooled = fares.quote(10, 3, VehicleType.BIKE, DeliveryType.POOL)

        assert pooled.pool_discount == pytest.approx(117.875 * 0.40)
        assert pooled.total_fare == 83
        assert pooled.total_fare < express.total_fare

    def test_weight_above_free_limit(self, fares):
        assert fares.quote(5, 20, VehicleType.AUTO).weight_cost == pytest.approx(15)

    def test_weight_above_capacity(self, fares):
        with pytest.raises(WeightLimitExceededError):
            fares.quote(5, 12, VehicleType.BIKE)

    def test_tolls_and_maintenance(self, fares):
        breakdown = fares.quote(25, 100, VehicleType.MINI_TRUCK)
        assert breakdown.toll_charges == pytest.approx(50)
        assert breakdown.vehicle_cost == pytest.approx(30)

    def test_surcharges(self, fares):
        ctx = TimeContext(TimeOfDay.PEAK, WeatherCondition.HEAVY_RAIN, is_holiday=True)
        breakdown = fares.quote(10, 3, VehicleType.BIKE, time_context=ctx)

        assert breakdown.time_surcharge == pytest.approx(20)
        assert breakdown.weather_surcharge == pytest.approx(16)
        assert breakdown.holiday_surcharge == pytest.approx(12)

    @pytest.mark.parametrize("package_type,weight,fee", [
        (PackageType.NORMAL, 3, 0),
        (PackageType.FRAGILE, 3, 20),
        (PackageType.FRAGILE, 15, 30),
        (PackageType.HAZARDOUS, 3, 50),
        (PackageType.HAZARDOUS, 20, 100),
    ])
    def test_handling_fee(self, fares, package_type, weight, fee):
        breakdown = fares.quote(5, weight, VehicleType.AUTO, package_type=package_type)
        assert breakdown.package_handling_fee == pytest.approx(fee)

    def test_custom_rates(self):
        fares = FareQuoteService(FareConfig(platform_fee=0.0, tax_rate=0.0, fuel_cost_share=0.0))
        assert fares.quote(10, 3, VehicleType.BIKE).total_fare == 110


    def test_half_fare_rounds_up(self):
        fares = FareQuoteService(FareConfig(platform_fee=0.0, tax_rate=0.0, fuel_cost_share=0.0))

        # 30 base + 9.0625 km x 8 = 102.5
        breakdown = fares.quote(9.0625, 3, VehicleType.BIKE)

        assert breakdown.total_fare == 103
        assert breakdown.driver_earnings == 103

    @pytest.mark.parametrize("value,expected", [(102.5, 103), (103.5, 104), (102.49, 102), (0.5, 1)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestRecommendations:

    def test_heavy_package_ranking(self, fares):
        recommendations = fares.recommend_vehicles(weight_kg=60, distance_km=10)

        assert [r.vehicle_type for r in recommendations] == [
            VehicleType.MINI_TRUCK,
            VehicleType.PICKUP,
            VehicleType.BIKE,
            VehicleType.AUTO,
        ]
        assert [r.suitable for r in recommendations] == [True, True, False, False]
        assert recommendations[0].estimated_fare < recommendations[1].estimated_fare
        assert recommendations[2].estimated_fare == 0

    def test_light_package_all_suitable(self, fares):
        recommendations = fares.recommend_vehicles(weight_kg=2, distance_km=5)

        assert all(r.suitable for r in recommendations)
        assert recommendations[0].vehicle_type == VehicleType.BIKE
        assert recommendations[0].reason == "No extra weight charges"


class TestTimeContext:

    @pytest.mark.parametrize("hour,expected", [
        (9, TimeOfDay.PEAK),
        (18, TimeOfDay.PEAK),
        (13, TimeOfDay.NORMAL),
        (23, TimeOfDay.NIGHT),
        (3, TimeOfDay.NIGHT),
    ])
    def test_time_category(self, hour, expected):
        assert time_category(datetime(2026, 10, 19, hour)) == expected

    def test_weekend_is_holiday(self):
        assert is_holiday(datetime(2026, 10, 17, 12))
        assert not is_holiday(datetime(2026, 10, 19, 12))

    def test_time_context_for(self):
        ctx = time_context_for(datetime(2026, 10, 17, 9), WeatherCondition.RAIN)
        assert ctx == TimeContext(TimeOfDay.PEAK, WeatherCondition.RAIN, True)
