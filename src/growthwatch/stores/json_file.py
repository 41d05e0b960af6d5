"""JSON file backend for growth alerts."""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Union

from pydantic import TypeAdapter, ValidationError

from ..alerts import Alert
from .base import AlertStore

_ALERT_LIST = TypeAdapter(List[Alert])

# One lock per document, shared by every store instance opened on it
_PATH_LOCKS: Dict[Path, threading.RLock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    with _PATH_LOCKS_GUARD:
        return _PATH_LOCKS.setdefault(path.resolve(), threading.RLock())


class JsonFileAlertStore(AlertStore):
    """
    Alert store persisted as a single JSON document.

    The document holds the alert list and a last_updated timestamp. Writes go
    to a uniquely named temporary file that then replaces the target, so
    readers never see a partially written file. Instances opened on the same
    path share one lock, so their read-modify-write cycles never interleave.

    Parameters
    ----------
    path : str or Path
        Location of the JSON document. Parent directories are created on first write.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__()
        self.path = Path(path)
        self._lock = _lock_for(self.path)

    def _load_alerts(self) -> List[Alert]:
        """
        Read the stored alerts.

        Returns an empty list if the file doesn't exist or can't be parsed.
        """
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                logging.warning(f"Invalid alert store format in {self.path}, ignoring contents")
                return []
            return _ALERT_LIST.validate_python(data.get("alerts", []))
        except (json.JSONDecodeError, ValidationError, ValueError, TypeError) as e:
            logging.warning(f"Error loading alerts from {self.path}: {e}")
            return []

    def _store_alerts(self, alerts: List[Alert]) -> None:
        """
        Write the alert list atomically.

        Raises
        ------
        IOError
            If unable to write to file
        """
        temp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            data = {
                "last_updated": datetime.now(timezone.utc).isoformat(),
                "alerts": _ALERT_LIST.dump_python(alerts, mode="json"),
            }

            with tempfile.NamedTemporaryFile(
                "w",
                dir=self.path.parent,
                prefix=f"{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                temp_path = Path(f.name)
                json.dump(data, f, indent=2)
            os.replace(temp_path, self.path)

        except OSError as e:
            if temp_path is not None and temp_path.exists():
                temp_path.unlink()
            raise IOError(f"Failed to save alerts to {self.path}: {str(e)}") from e
