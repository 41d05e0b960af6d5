import json
import logging
import threading
from datetime import timedelta

import pytest

from growthwatch.alerts import detect_percentile_alert
from growthwatch.stores import JsonFileAlertStore


def test_tc001_missing_file_is_empty_store(tmp_path) -> None:
    store = JsonFileAlertStore(tmp_path / "alerts.json")
    assert store.get_all() == []
    assert not store.path.exists()


def test_tc002_persists_across_instances(tmp_path, make_alert) -> None:
    path = tmp_path / "nested" / "alerts.json"
    alert = make_alert("p1")
    JsonFileAlertStore(path).save(alert)
    JsonFileAlertStore(path).acknowledge(alert.id)

    reopened = JsonFileAlertStore(path).get_all()
    assert [a.id for a in reopened] == [alert.id]
    assert reopened[0].is_acknowledged is True
    assert reopened[0].created_at == alert.created_at


def test_tc003_document_layout(tmp_path, make_alert) -> None:
    path = tmp_path / "alerts.json"
    JsonFileAlertStore(path).save(make_alert("p1", percentile=95.0))

    with open(path) as f:
        data = json.load(f)
    assert set(data) == {"last_updated", "alerts"}
    assert data["alerts"][0]["severity"] == "warning"
    assert data["alerts"][0]["type"] == "high_percentile"
    assert data["alerts"][0]["measurement"]["weight"] == 5.0


def test_tc004_no_temp_file_left(tmp_path, make_alert) -> None:
    store = JsonFileAlertStore(tmp_path / "alerts.json")
    store.save(make_alert("p1"))
    store.clear()
    assert [p.name for p in tmp_path.iterdir()] == ["alerts.json"]


def test_tc005_corrupt_file_treated_as_empty(tmp_path, make_alert, caplog) -> None:
    caplog.set_level(logging.WARNING)
    path = tmp_path / "alerts.json"
    path.write_text("{not json")

    store = JsonFileAlertStore(path)
    assert store.get_all() == []
    assert any("Error loading alerts" in str(r.message) for r in caplog.records)

    # The next write replaces the unreadable document
    store.save(make_alert("p1"))
    assert len(JsonFileAlertStore(path)) == 1


def test_tc006_non_dict_document(tmp_path, caplog) -> None:
    caplog.set_level(logging.WARNING)
    path = tmp_path / "alerts.json"
    path.write_text("[1, 2, 3]")
    assert JsonFileAlertStore(path).get_all() == []
    assert any("Invalid alert store format" in str(r.message) for r in caplog.records)


def test_tc007_invalid_alert_records(tmp_path, caplog) -> None:
    caplog.set_level(logging.WARNING)
    path = tmp_path / "alerts.json"
    path.write_text(json.dumps({"alerts": [{"id": "x"}]}))
    assert JsonFileAlertStore(path).get_all() == []
    assert any("Error loading alerts" in str(r.message) for r in caplog.records)


def test_tc008_unwritable_location(tmp_path, make_alert) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    store = JsonFileAlertStore(blocker / "alerts.json")
    with pytest.raises(IOError, match="Failed to save alerts"):
        store.save(make_alert("p1"))


def test_tc009_separate_instances_on_one_file_share_writes(tmp_path, fixed_now, caplog) -> None:
    """Threads with their own store on the same path lose no alerts"""
    caplog.set_level(logging.WARNING)
    path = tmp_path / "alerts.json"
    errors = []

    def worker(n: int) -> None:
        store = JsonFileAlertStore(path)
        try:
            for i in range(10):
                pid = f"t{n}-p{i}"
                alert = detect_percentile_alert(
                    1.0, pid, pid, 4.0, 6, now=fixed_now + timedelta(seconds=n * 100 + i)
                )
                store.save(alert)
        except IOError as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(JsonFileAlertStore(path)) == 40
    assert not any("Error loading alerts" in str(r.message) for r in caplog.records)
    assert [p.name for p in tmp_path.iterdir()] == ["alerts.json"]
