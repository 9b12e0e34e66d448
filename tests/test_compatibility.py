"""Tests for compatibility scoring."""

import random

import pytest

from backend.core.models.domain import Location, Pool
from backend.core.pooling import CompatibilityConfig, CompatibilityScorer

from conftest import MUMBAI_DROPOFF, MUMBAI_PICKUP, make_request, shifted


NORTH_PICKUP = Location(latitude=19.0760, longitude=72.8777)
NORTH_DROPOFF = Location(latitude=19.1000, longitude=72.8777)

# ~1.5 km and ~3 km east of the northbound leg at this latitude
EAST_1_5_KM = 0.01426
EAST_3_KM = 0.02852


def pool_of(*requests) -> Pool:
    return Pool(pool_id="POOL_TEST", requests=list(requests))


@pytest.fixture
def scorer():
    return CompatibilityScorer()


class TestPairScores:
    """Sub-scores of one candidate against one member."""

    def test_identical_route_scores_one(self, scorer, request_1):
        twin = make_request("TWIN", request_1.pickup, request_1.dropoff)
        result = scorer.score_pair(request_1, twin)

        assert result.pickup_score == pytest.approx(1.0)
        assert result.dropoff_score == pytest.approx(1.0)
        assert result.direction_score == pytest.approx(1.0)
        assert result.composite == pytest.approx(1.0)

    def test_parallel_route_weights(self, scorer):
        member = make_request("M", NORTH_PICKUP, NORTH_DROPOFF)
        candidate = make_request(
            "C",
            shifted(NORTH_PICKUP, dlon=EAST_1_5_KM),
            shifted(NORTH_DROPOFF, dlon=EAST_1_5_KM),
        )
        result = scorer.score_pair(member, candidate)

        assert result.pickup_score == pytest.approx(0.7, abs=0.01)
        assert result.dropoff_score == pytest.approx(0.7, abs=0.01)
        assert result.direction_score == pytest.approx(1.0)
        assert result.composite == pytest.approx(
            0.3 * result.pickup_score + 0.3 * result.dropoff_score + 0.4 * result.direction_score
        )

    def test_proximity_zero_beyond_radius(self, scorer):
        assert scorer.proximity_score(5.0) == 0.0
        assert scorer.proximity_score(12.0) == 0.0
        assert scorer.proximity_score(2.5) == pytest.approx(0.5)

    def test_opposite_direction_scores_zero(self, scorer):
        member = make_request("M", NORTH_PICKUP, NORTH_DROPOFF)
        reverse = make_request("R", NORTH_DROPOFF, NORTH_PICKUP)
        assert scorer.direction_similarity(member, reverse) == 0.0

    def test_right_angle_scores_zero(self, scorer):
        member = make_request("M", NORTH_PICKUP, NORTH_DROPOFF)
        eastbound = make_request("E", NORTH_PICKUP, shifted(NORTH_PICKUP, dlon=0.02))
        assert scorer.direction_similarity(member, eastbound) == pytest.approx(0.0, abs=1e-3)

    def test_custom_radius(self):
        scorer = CompatibilityScorer(CompatibilityConfig(proximity_radius_km=10.0))
        assert scorer.proximity_score(5.0) == pytest.approx(0.5)


class TestPoolScore:
    """Pool-level score is the mean over members."""

    def test_mean_of_member_composites(self, scorer):
        m1 = make_request("M1", NORTH_PICKUP, NORTH_DROPOFF)
        m2 = make_request(
            "M2",
            shifted(NORTH_PICKUP, dlon=EAST_3_KM),
            shifted(NORTH_DROPOFF, dlon=EAST_3_KM),
        )
        candidate = make_request(
            "C",
            shifted(NORTH_PICKUP, dlon=EAST_1_5_KM),
            shifted(NORTH_DROPOFF, dlon=EAST_1_5_KM),
        )
        expected = (
            scorer.score_pair(m1, candidate).composite
            + scorer.score_pair(m2, candidate).composite
        ) / 2

        assert scorer.score(pool_of(m1, m2), candidate) == pytest.approx(expected)

    def test_score_is_directional(self, scorer):
        """Candidate-to-members fit, not pool-to-pool symmetry."""
        m1 = make_request("M1", NORTH_PICKUP, NORTH_DROPOFF)
        m2 = make_request(
            "M2",
            shifted(NORTH_PICKUP, dlon=EAST_3_KM),
            shifted(NORTH_DROPOFF, dlon=EAST_3_KM),
        )
        candidate = make_request("C", NORTH_PICKUP, NORTH_DROPOFF)

        forward = scorer.score(pool_of(m1, m2), candidate)
        reverse = scorer.score(pool_of(candidate), m2)

        assert forward != pytest.approx(reverse)

    def test_empty_pool_rejected(self, scorer, request_1):
        with pytest.raises(ValueError):
            scorer.score(pool_of(), request_1)

    def test_far_dropoff_fails_threshold(self, scorer, request_1):
        kolkata = Location(latitude=22.5726, longitude=88.3639, address="Kolkata")
        candidate = make_request("FAR", shifted(MUMBAI_PICKUP, dlat=0.001), kolkata)

        assert scorer.score(pool_of(request_1), candidate) < 0.70

    def test_score_bounded(self, scorer):
        rng = random.Random(42)
        for _ in range(200):
            members = [
                make_request(
                    f"M{i}",
                    shifted(MUMBAI_PICKUP, rng.uniform(-0.1, 0.1), rng.uniform(-0.1, 0.1)),
                    shifted(MUMBAI_DROPOFF, rng.uniform(-0.1, 0.1), rng.uniform(-0.1, 0.1)),
                )
                for i in range(rng.randint(1, 3))
            ]
            candidate = make_request(
                "C",
                shifted(MUMBAI_PICKUP, rng.uniform(-0.1, 0.1), rng.uniform(-0.1, 0.1)),
                shifted(MUMBAI_DROPOFF, rng.uniform(-0.1, 0.1), rng.uniform(-0.1, 0.1)),
            )
            score = scorer.score(pool_of(*members), candidate)
            assert 0.0 <= score <= 1.0 + 1e-12
