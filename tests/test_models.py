"""Tests for the persisted document models."""

from __future__ import annotations

from evtuner.models import ChargeRecord, ExportSnapshot, LastInput, RideRecord, Settings, Template


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.voltage == 64
        assert settings.capacity == 45
        assert settings.excellent_threshold == 25
        assert settings.warning_threshold == 32
        assert settings.custom_tags == []
        assert settings.dark_mode is False
        assert settings.electricity_price == 0.6
        assert settings.total_energy == 2880

    def test_document_uses_camel_case_keys(self) -> None:
        document = Settings().to_document()
        assert set(document) == {
            "voltage",
            "capacity",
            "excellentThreshold",
            "warningThreshold",
            "customTags",
            "darkMode",
            "electricityPrice",
        }

    def test_lenient_coercion_falls_back_to_defaults(self) -> None:
        settings = Settings.model_validate(
            {"voltage": "72", "capacity": "n/a", "customTags": "oops", "darkMode": "true", "electricityPrice": None}
        )
        assert settings.voltage == 72
        assert settings.capacity == 45
        assert settings.custom_tags == []
        assert settings.dark_mode is True
        assert settings.electricity_price == 0.6

    def test_unknown_keys_survive(self) -> None:
        settings = Settings.model_validate({"voltage": 48, "language": "zh"})
        assert settings.to_document()["language"] == "zh"

    def test_normalize_keys_maps_snake_case(self) -> None:
        assert Settings.normalize_keys({"custom_tags": ["a"], "voltage": 60, "other": 1}) == {
            "customTags": ["a"],
            "voltage": 60,
            "other": 1,
        }


class TestRideRecord:
    SAMPLE: dict = {
        "id": "1735689600000",
        "socConsumed": 12,
        "distance": 8.5,
        "busbarCurrent": 45,
        "phaseCurrent": 120,
        "tag": "单人通勤",
        "timestamp": "2025-01-01T00:00:00.000Z",
    }

    def test_parses_camel_case(self) -> None:
        ride = RideRecord.model_validate(self.SAMPLE)
        assert ride.id == "1735689600000"
        assert ride.soc_consumed == 12
        assert ride.distance == 8.5
        assert ride.busbar_current == 45
        assert ride.phase_current == 120
        assert ride.tag == "单人通勤"
        assert ride.notes is None

    def test_document_round_trip(self) -> None:
        assert RideRecord.model_validate(self.SAMPLE).to_document() == self.SAMPLE

    def test_optional_fields_omitted_when_unset(self) -> None:
        document = RideRecord(id="1", soc_consumed=5, distance=2).to_document()
        assert "tag" not in document
        assert "notes" not in document
        assert "timestamp" not in document

    def test_numeric_id_and_bad_numbers(self) -> None:
        ride = RideRecord.model_validate({"id": 42, "socConsumed": "abc", "distance": "3.5", "extra": [1, 2]})
        assert ride.id == "42"
        assert ride.soc_consumed == 0
        assert ride.distance == 3.5
        assert ride.to_document()["extra"] == [1, 2]

    def test_document_keeps_source_values_verbatim(self) -> None:
        source = {
            "socConsumed": 12,
            "distance": "n/a",
            "busbarCurrent": 45,
            "phaseCurrent": 120,
            "tag": None,
            "notes": None,
            "timestamp": "2025-01-01T00:00:00.000Z",
            "weather": None,
            "id": 1735689600000,
        }
        ride = RideRecord.model_validate(source)

        assert ride.distance == 0
        assert ride.notes is None
        document = ride.to_document()
        assert document == source
        assert list(document) == list(source)
        assert isinstance(document["socConsumed"], int)

    def test_changed_fields_override_source_values(self) -> None:
        ride = RideRecord.model_validate({"socConsumed": 12, "distance": "n/a", "notes": None, "id": "1"})
        updated = ride.model_copy(update={"distance": 4.5, "notes": "wet"})

        assert updated.to_document() == {"socConsumed": 12, "distance": 4.5, "notes": "wet", "id": "1"}

    def test_snake_case_input_is_written_camel_case(self) -> None:
        ride = RideRecord.model_validate({"id": "1", "soc_consumed": 5, "distance": 2})
        assert ride.to_document() == {"id": "1", "socConsumed": 5, "distance": 2}


def test_charge_record_soc_charged() -> None:
    charge = ChargeRecord.model_validate({"id": "1", "socBefore": 15, "socAfter": 95, "location": "home"})
    assert charge.soc_charged == 80
    assert charge.to_document() == {
        "id": "1",
        "socBefore": 15,
        "socAfter": 95,
        "location": "home",
    }
    assert charge.meter_energy == 0


def test_template_keeps_user_fields() -> None:
    template = Template.model_validate({"id": "1", "name": "通勤", "socConsumed": 10, "tag": "单人通勤"})
    assert template.name == "通勤"
    assert template.to_document() == {"id": "1", "name": "通勤", "socConsumed": 10, "tag": "单人通勤"}


def test_last_input_defaults() -> None:
    last = LastInput()
    assert last.to_document() == {"busbarCurrent": 45, "phaseCurrent": 120}


def test_export_snapshot_blocks_are_optional() -> None:
    snapshot = ExportSnapshot.model_validate({"records": []})
    assert snapshot.settings is None
    assert snapshot.records == []
