from repokb.api.telemetry import Telemetry


def test_snapshot_aggregates_ingest_requests() -> None:
    telemetry = Telemetry()
    telemetry.record_ingest(100.0, "200", {"project": "widgets"})
    telemetry.record_ingest(50.0, "401", {"project": "private"})

    snapshot = telemetry.snapshot()
    ingest = snapshot["ingest"]
    assert ingest["count"] == 2
    assert ingest["failures"] == 1
    assert ingest["average_duration_ms"] == 75.0
    assert [event["code"] for event in snapshot["recent_events"]] == ["401", "200"]
    assert snapshot["recent_events"][1]["metadata"] == {"project": "widgets"}


def test_history_is_bounded() -> None:
    telemetry = Telemetry(history_size=3)
    for _ in range(5):
        telemetry.record_ingest(1.0, "200")
    snapshot = telemetry.snapshot()
    assert snapshot["ingest"]["count"] == 5
    assert len(snapshot["recent_events"]) == 3


def test_empty_snapshot() -> None:
    snapshot = Telemetry().snapshot()
    assert snapshot["ingest"]["average_duration_ms"] == 0.0
    assert snapshot["ingest"]["last_timestamp"] is None
    assert snapshot["recent_events"] == []
