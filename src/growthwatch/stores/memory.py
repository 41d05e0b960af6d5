from typing import Dict, List

from ..alerts import Alert
from .base import AlertStore


class InMemoryAlertStore(AlertStore):
    """Process-local alert store keyed by alert id."""

    def __init__(self) -> None:
        super().__init__()
        self._alerts: Dict[str, Alert] = {}

    def _load_alerts(self) -> List[Alert]:
        return list(self._alerts.values())

    def _store_alerts(self, alerts: List[Alert]) -> None:
        self._alerts = {a.id: a for a in alerts}
