"""
Base class for alert stores.
"""

from abc import ABC, abstractmethod
from typing import List
import logging
import threading

from ..alerts import Alert, AlertStats, Severity


class AlertStore(ABC):
    """
    Abstract base class for alert storage backends.

    Subclasses implement `_load_alerts` and `_store_alerts` for their medium;
    the base class implements the store semantics on top of them:

    - at most one alert per patient: `save` replaces any prior alert for the
      same patient (last detection wins, no history)
    - `acknowledge` flips is_acknowledged to True and is never reversed
    - `acknowledge` and `delete` on an unknown id are no-ops

    Every operation runs under one re-entrant lock, so the
    read-delete-insert sequence of `save` is atomic for concurrent callers.

    Example subclass implementation:
        class ListAlertStore(AlertStore):
            def __init__(self):
                super().__init__()
                self._alerts = []

            def _load_alerts(self) -> List[Alert]:
                return list(self._alerts)

            def _store_alerts(self, alerts: List[Alert]) -> None:
                self._alerts = list(alerts)
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()

    @abstractmethod
    def _load_alerts(self) -> List[Alert]:
        """Return all stored alerts in insertion order."""
        pass

    @abstractmethod
    def _store_alerts(self, alerts: List[Alert]) -> None:
        """Replace the stored alerts with the given list."""
        pass

    def save(self, alert: Alert) -> None:
        """Store an alert, superseding any existing alert for the same patient."""
        with self._lock:
            alerts = self._load_alerts()
            kept = [a for a in alerts if a.patient_id != alert.patient_id]
            if len(kept) != len(alerts):
                logging.info(
                    f"Superseding {len(alerts) - len(kept)} alert(s) for patient {alert.patient_id}"
                )
            kept.append(alert.model_copy(deep=True))
            self._store_alerts(kept)

    def get_all(self) -> List[Alert]:
        with self._lock:
            return [a.model_copy(deep=True) for a in self._load_alerts()]

    def get_active(self) -> List[Alert]:
        """Return alerts that have not been acknowledged."""
        return [a for a in self.get_all() if not a.is_acknowledged]

    def get_by_patient(self, patient_id: str) -> List[Alert]:
        return [a for a in self.get_all() if a.patient_id == patient_id]

    def acknowledge(self, alert_id: str) -> bool:
        """
        Mark an alert as acknowledged.

        Returns:
            True if an alert with that id exists, False otherwise (no-op).
        """
        with self._lock:
            alerts = self._load_alerts()
            found = False
            for alert in alerts:
                if alert.id == alert_id:
                    alert.is_acknowledged = True
                    found = True
            if found:
                self._store_alerts(alerts)
            return found

    def delete(self, alert_id: str) -> bool:
        """
        Remove an alert.

        Returns:
            True if an alert was removed, False if the id was unknown (no-op).
        """
        with self._lock:
            alerts = self._load_alerts()
            kept = [a for a in alerts if a.id != alert_id]
            if len(kept) == len(alerts):
                return False
            self._store_alerts(kept)
            return True

    def clear(self) -> None:
        with self._lock:
            self._store_alerts([])

    def stats(self) -> AlertStats:
        """Counts over the entire stored set, acknowledged alerts included."""
        alerts = self.get_all()
        return AlertStats(
            total=len(alerts),
            critical=sum(1 for a in alerts if a.severity == Severity.CRITICAL),
            warning=sum(1 for a in alerts if a.severity == Severity.WARNING),
            unacknowledged=sum(1 for a in alerts if not a.is_acknowledged),
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._load_alerts())
