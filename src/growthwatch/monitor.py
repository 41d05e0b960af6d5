"""Score a measurement, detect an alert and record it in an injected store."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from .alerts import Alert, detect_percentile_alert
from .config import AssessmentConfig
from .reference import ReferenceTable, Sex, load_reference_table
from .stores import AlertStore, InMemoryAlertStore, JsonFileAlertStore
from .zscores import ScoreResult, calculate_weight_for_age


@dataclass(frozen=True)
class Evaluation:
    result: ScoreResult
    alert: Optional[Alert]


class GrowthMonitor:
    """
    Weight-for-age monitoring for a population of patients.

    Usage:
        monitor = GrowthMonitor(InMemoryAlertStore())
        evaluation = monitor.evaluate("p1", "Ana", "female", 12, 5.0)
        monitor.store.stats()

    Attributes:
        store (AlertStore): Where detected alerts are saved. Without an injected
            store, a JSON store at config.alert_store_path is opened, or an
            in-memory store when no path is configured.
        config (AssessmentConfig): Scoring settings.
        table (ReferenceTable): LMS reference used for scoring.
    """

    def __init__(
        self,
        store: Optional[AlertStore] = None,
        config: Optional[AssessmentConfig] = None,
        table: Optional[ReferenceTable] = None,
    ) -> None:
        self.config = config or AssessmentConfig()
        if store is None:
            if self.config.alert_store_path is not None:
                store = JsonFileAlertStore(self.config.alert_store_path)
            else:
                store = InMemoryAlertStore()
        self.store = store
        self.table = table or load_reference_table()

    def evaluate(
        self,
        patient_id: str,
        patient_name: str,
        sex: Union[Sex, str],
        age_months: float,
        weight: float,
        now: Optional[datetime] = None,
    ) -> Evaluation:
        """
        Score one measurement and save an alert if it falls outside the normal band.

        A measurement in the normal band leaves any existing alert for the
        patient untouched.

        Raises:
            InvalidArgumentError: On invalid sex, weight or age.
        """
        result = calculate_weight_for_age(
            age_months, weight, sex, config=self.config, table=self.table
        )
        alert = detect_percentile_alert(
            result.percentile, patient_id, patient_name, weight, age_months, now=now
        )
        if alert is not None:
            self.store.save(alert)
        return Evaluation(result=result, alert=alert)
