from __future__ import annotations

import math
from datetime import UTC, datetime

import pytest

from evtuner.calculator import (
    ConsumptionTier,
    consumed_energy,
    consumption_tier,
    electricity_cost,
    energy_consumption,
    enrich_charge_record,
    enrich_record,
    estimate_range,
    format_date_short,
    format_date_time_long,
    parse_date,
    round_half_away,
    summarize_rides,
)
from evtuner.models import ChargeRecord, RideRecord

TOTAL_ENERGY = 64 * 45  # 2880 Wh


# ------------------------------------------------------------------
# Basic conversions
# ------------------------------------------------------------------


class TestConversions:
    def test_consumed_energy(self) -> None:
        assert consumed_energy(50, TOTAL_ENERGY) == 1440

    def test_consumed_energy_passes_out_of_range_soc_through(self) -> None:
        assert consumed_energy(150, 1000) == 1500
        assert consumed_energy(-10, 1000) == -100

    @pytest.mark.parametrize("distance", [0, -1, -0.5])
    def test_energy_consumption_guards_non_positive_distance(self, distance: float) -> None:
        assert energy_consumption(1440, distance) == 0

    def test_energy_consumption(self) -> None:
        assert energy_consumption(1440, 20) == 72

    @pytest.mark.parametrize("consumption", [0, -3])
    def test_range_guards_non_positive_consumption(self, consumption: float) -> None:
        assert estimate_range(TOTAL_ENERGY, consumption) == 0

    def test_range(self) -> None:
        assert estimate_range(TOTAL_ENERGY, 72) == 40

    def test_electricity_cost_converts_wh_to_kwh(self) -> None:
        assert electricity_cost(2000, 0.5) == pytest.approx(1.0)


class TestConsumptionTier:
    def test_below_excellent(self) -> None:
        assert consumption_tier(24.9) == ConsumptionTier.EXCELLENT

    def test_exactly_excellent_threshold_is_normal(self) -> None:
        assert consumption_tier(25) == ConsumptionTier.NORMAL

    def test_exactly_warning_threshold_is_normal(self) -> None:
        assert consumption_tier(32) == ConsumptionTier.NORMAL

    def test_above_warning(self) -> None:
        assert consumption_tier(32.1) == ConsumptionTier.WARNING

    def test_custom_thresholds(self) -> None:
        assert consumption_tier(19, 20, 30) == "excellent"
        assert consumption_tier(30, 20, 30) == "normal"
        assert consumption_tier(31, 20, 30) == "warning"


class TestRounding:
    def test_halves_round_away_from_zero(self) -> None:
        assert round_half_away(2.5) == 3
        assert round_half_away(-2.5) == -3
        assert round_half_away(0.125, 2) == 0.13

    def test_scales_before_rounding(self) -> None:
        # 0.864 * 100 is 86.39999... in binary floating point.
        assert round_half_away(0.864, 2) == 0.86

    def test_non_finite_passes_through(self) -> None:
        assert math.isnan(round_half_away(float("nan"), 1))
        assert round_half_away(float("inf"), 1) == float("inf")


# ------------------------------------------------------------------
# Dates
# ------------------------------------------------------------------


class TestDates:
    def test_long_format_is_zero_padded(self) -> None:
        assert format_date_time_long(datetime(2025, 3, 7, 9, 5)) == "2025-03-07 09:05"

    def test_short_format_is_not_padded(self) -> None:
        assert format_date_short(datetime(2025, 3, 7, 9, 5)) == "3月7日"

    def test_iso_string_with_z_is_converted_to_local_time(self) -> None:
        expected = datetime(2025, 12, 31, 23, 30, tzinfo=UTC).astimezone()
        assert format_date_time_long("2025-12-31T23:30:00.000Z") == expected.strftime("%Y-%m-%d %H:%M")

    def test_epoch_milliseconds(self) -> None:
        expected = datetime.fromtimestamp(1_735_689_600)
        assert parse_date(1_735_689_600_000) == expected
        assert parse_date("1735689600000") == expected

    def test_small_numbers_are_still_milliseconds(self) -> None:
        assert parse_date(86_400_000) == datetime.fromtimestamp(86_400)
        assert parse_date(1_735_689_600) == datetime.fromtimestamp(1_735_689.6)
        assert parse_date("60000") == datetime.fromtimestamp(60)

    def test_unparseable_date_raises(self) -> None:
        with pytest.raises(ValueError):
            format_date_short("yesterday")


# ------------------------------------------------------------------
# Records
# ------------------------------------------------------------------


class TestEnrichRecord:
    def test_reference_ride(self) -> None:
        record = {"id": "1", "socConsumed": 50, "distance": 20, "busbarCurrent": 45, "phaseCurrent": 120}
        enriched = enrich_record(record, TOTAL_ENERGY, 0.6)

        assert enriched["consumedEnergy"] == 1440.0
        assert enriched["energyConsumption"] == 72.0
        assert enriched["range"] == 40
        assert enriched["electricityCost"] == 0.86

    def test_range_is_an_integer(self) -> None:
        enriched = enrich_record({"socConsumed": 33, "distance": 17.3}, TOTAL_ENERGY)
        assert isinstance(enriched["range"], int)
        assert enriched["range"] == 52
        assert isinstance(enrich_record({"socConsumed": 10, "distance": 0}, TOTAL_ENERGY)["range"], int)

    def test_returns_copy_with_original_fields(self) -> None:
        record = {"id": "1", "socConsumed": 10, "distance": 5, "tag": "单人通勤"}
        enriched = enrich_record(record, TOTAL_ENERGY)

        assert enriched["tag"] == "单人通勤"
        assert enriched["electricityCost"] == 0
        assert "consumedEnergy" not in record

    def test_accepts_model(self) -> None:
        ride = RideRecord(id="7", soc_consumed=10, distance=8)
        enriched = enrich_record(ride, TOTAL_ENERGY, 0.6)

        assert enriched["id"] == "7"
        assert enriched["consumedEnergy"] == 288.0
        assert enriched["energyConsumption"] == 36.0
        assert enriched["range"] == 80
        assert enriched["electricityCost"] == 0.17

    def test_zero_distance(self) -> None:
        enriched = enrich_record({"socConsumed": 10, "distance": 0}, TOTAL_ENERGY)
        assert enriched["energyConsumption"] == 0
        assert enriched["range"] == 0


class TestEnrichChargeRecord:
    def test_without_meter_reading_uses_pack_energy(self) -> None:
        charge = ChargeRecord(id="1", soc_before=20, soc_after=70)
        enriched = enrich_charge_record(charge, TOTAL_ENERGY, 0.6)

        assert enriched["socCharged"] == 50
        assert enriched["chargedEnergy"] == 1440.0
        assert enriched["chargeCost"] == 0.86
        assert enriched["chargeEfficiency"] == 0

    def test_meter_reading_and_session_price(self) -> None:
        charge = {"socBefore": 20, "socAfter": 70, "meterEnergy": 1600, "price": 1.0}
        enriched = enrich_charge_record(charge, TOTAL_ENERGY, 0.6)

        assert enriched["chargeCost"] == 1.6
        assert enriched["chargeEfficiency"] == 0.9


def test_summarize_rides() -> None:
    rides = [
        {"socConsumed": 50, "distance": 20},
        {"socConsumed": 25, "distance": 20},
    ]
    summary = summarize_rides(rides, TOTAL_ENERGY, 0.6)

    assert summary.ride_count == 2
    assert summary.total_distance == 40
    assert summary.total_consumed_energy == 2160
    assert summary.average_consumption == 54
    assert summary.average_range == 53
    assert summary.total_cost == 1.3


def test_summarize_no_rides() -> None:
    summary = summarize_rides([], TOTAL_ENERGY)
    assert summary.ride_count == 0
    assert summary.average_consumption == 0
    assert summary.average_range == 0
