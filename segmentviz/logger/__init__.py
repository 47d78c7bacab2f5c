"""Logging package for segmentviz."""

from segmentviz.logger.base_logger import AlgorithmLogger
from segmentviz.logger.table_logger import TableLogger
from segmentviz.logger.combined_logger import Logger
from segmentviz.logger.formatting import (
    format_groups,
    format_proportions,
)

# Unified singleton for step-by-step debugging output
viz_logger = Logger("SegmentViz")
viz_logger.disabled = True

__all__ = [
    "AlgorithmLogger",
    "TableLogger",
    "Logger",
    "viz_logger",
    "format_groups",
    "format_proportions",
]
