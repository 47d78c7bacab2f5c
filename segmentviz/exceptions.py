"""
Custom exceptions for split statistics and segment visualization.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, NoReturn

if TYPE_CHECKING:
    from segmentviz.elements.split import Split

logger = logging.getLogger(__name__)


class SegmentVizError(Exception):
    """Base exception for segmentviz errors."""

    pass


class ConfigurationError(SegmentVizError):
    """Raised when a session or visualization configuration is inconsistent."""

    pass


class DataIntegrityError(SegmentVizError):
    """Raised when aggregated statistics reveal corrupted input data."""

    @staticmethod
    def raise_non_positive_weight(
        split_index: int, split: Split, total_weight: float, scope: str = "split"
    ) -> NoReturn:
        """
        Raises a DataIntegrityError for a split whose total weight is not positive
        after at least one valid respondent was added to it.

        Args:
            split_index: Index of the offending split in the lattice
            split: The updated split
            total_weight: The offending total weight
            scope: Which total was checked ("split" or a response question key)

        Raises:
            DataIntegrityError: Always raised with detailed error information
        """
        message = (
            f"Data integrity violation: {scope} total weight of split {split_index} "
            f"({split.describe()}) is {total_weight} after adding valid respondents. "
            f"A zero or negative respondent weight slipped past validation."
        )
        logger.error(message)
        raise DataIntegrityError(message)
