"""
Base Generator for Mock Data.

Provides common functionality for all variable generators.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd

from ..coercion import ValueKind
from ..config import DetailRule, VariableDescriptor
from ..exceptions import ConstraintViolationError

logger = logging.getLogger(__name__)


@dataclass
class GeneratorConfig:
    """Configuration shared by all generators."""

    seed: int = 42
    n_records: int = 1000
    window: Optional[str] = None
    column_name: Optional[str] = None
    verbose: bool = False

    def validate(self) -> None:
        """Fail before sampling when parameters are inconsistent."""
        if self.n_records < 0:
            raise ConstraintViolationError(
                f"n_records must be non-negative, got {self.n_records}",
                parameter="n_records",
            )


@dataclass(frozen=True)
class GeneratedColumn:
    """
    One generated column and the row masks describing how it was built.

    ``na_mask`` marks true absence, ``missing_code_mask`` rows holding a
    missing code, ``garbage_mask`` rows overwritten with out-of-range
    values (garbage, or invalid dates).
    """

    name: str
    values: pd.Series
    kind: ValueKind
    na_mask: np.ndarray
    missing_code_mask: np.ndarray
    garbage_mask: np.ndarray
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.values)

    @property
    def valid_mask(self) -> np.ndarray:
        return ~(self.na_mask | self.missing_code_mask | self.garbage_mask)

    def to_frame(self) -> pd.DataFrame:
        return self.values.rename(self.name).to_frame()


class BaseGenerator(ABC):
    """
    Abstract base class for variable generators.

    Each generator owns a fresh random stream seeded from its config, so
    two generators built with the same seed and inputs draw identically.
    """

    def __init__(
        self,
        variable: VariableDescriptor,
        rules: Sequence[DetailRule],
        config: Optional[GeneratorConfig] = None,
    ):
        """
        Initialize the generator.

        Args:
            variable: Descriptor of the column to generate.
            rules: Detail rules; rows for other variables or windows are ignored.
            config: Generator configuration. Uses defaults if not provided.
        """
        self.variable = variable
        self.config = config or GeneratorConfig()
        self.rules = [
            r for r in rules if r.variable == variable.name and r.applies_to(self.config.window)
        ]
        self._rng = np.random.default_rng(self.config.seed)

    @property
    @abstractmethod
    def entity_type(self) -> str:
        """Return the variable type being generated."""
        pass

    @abstractmethod
    def generate(self) -> Optional[GeneratedColumn]:
        """
        Generate one column.

        Returns:
            The column, or None when nothing can be generated for the window.
        """
        pass

    def generate_timed(self) -> Optional[GeneratedColumn]:
        """Generate and log elapsed time."""
        start_time = time.time()
        column = self.generate()
        self._log(f"generated {self.config.n_records} rows in {time.time() - start_time:.3f}s")
        return column

    @property
    def n(self) -> int:
        return self.config.n_records

    @property
    def column_name(self) -> str:
        return self.config.column_name or self.variable.name

    def _context(self) -> Dict[str, Any]:
        return {"variable": self.variable.name, "window": self.config.window}

    def _random_choice(self, options: Sequence[Any], n: int, p: Optional[np.ndarray] = None) -> np.ndarray:
        """Generate random indices into options."""
        return self._rng.choice(len(options), size=n, p=p)

    def _pick_rows(self, count: int, eligible: np.ndarray) -> np.ndarray:
        """Boolean mask of ``count`` rows drawn without replacement from eligible rows."""
        mask = np.zeros(len(eligible), dtype=bool)
        candidates = np.flatnonzero(eligible)
        count = min(count, len(candidates))
        if count > 0:
            mask[self._rng.choice(candidates, size=count, replace=False)] = True
        return mask

    def _log(self, message: str) -> None:
        level = logging.INFO if self.config.verbose else logging.DEBUG
        logger.log(level, "[%s:%s] %s", self.entity_type, self.variable.name, message)


def row_count(n: int, proportion: Optional[float]) -> int:
    """Rows affected by a proportion: floor(n * p)."""
    if not proportion:
        return 0
    return int(np.floor(n * proportion + 1e-9))
