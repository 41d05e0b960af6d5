"""
Base detector class for batch growth screening methods.
"""

from abc import ABC, abstractmethod
import pandas as pd
from typing import Dict


class BaseDetector(ABC):
    """
    Abstract base class for batch screening methods.

    Each method inherits from this class and implements `detect` and
    `validate_config`. The base class provides common validation helpers.

    Example subclass implementation:
        class MedianDetector(BaseDetector):
            def __init__(self, tolerance: float = 0.2):
                self.tolerance = tolerance
                self.validate_config()

            def validate_config(self) -> None:
                if self.tolerance <= 0:
                    raise ValueError("tolerance must be positive")

            def detect(self, df: pd.DataFrame, columns: list[str]) -> Dict[str, pd.Series]:
                # Implementation here
                return {}
    """

    @abstractmethod
    def detect(self, df: pd.DataFrame, columns: list[str]) -> Dict[str, pd.Series]:
        """
        Flag rows of the specified measurement columns.

        Args:
            df: Input DataFrame.
            columns: Measurement columns to screen.

        Returns:
            Dictionary mapping column names to boolean Series, True where flagged.
        """
        pass

    @abstractmethod
    def validate_config(self) -> None:
        """
        Validate method-specific configuration.

        Raises:
            ValueError: If configuration is invalid.
        """
        pass

    def _validate_column(self, df: pd.DataFrame, column: str) -> None:
        """
        Validate that a column exists in the DataFrame.

        Raises:
            ValueError: If column does not exist.
        """
        if column not in df.columns:
            raise ValueError(f"Column '{column}' does not exist in DataFrame")
