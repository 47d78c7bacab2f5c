"""Combined logger with all functionality."""

from typing import Sequence

from segmentviz.elements.split import Split
from segmentviz.logger.base_logger import AlgorithmLogger
from segmentviz.logger.table_logger import TableLogger
from segmentviz.logger.formatting import format_groups, format_proportions


class Logger(TableLogger):
    """
    Combined logger with split-table rendering.

    Usage:
        logger = Logger("my_stats")
        logger.section("Batch 3")
        logger.info("Applying respondents...")
        logger.splits_table(splits, "q1||")
    """

    def __init__(self, name: str):
        AlgorithmLogger.__init__(self, name)

    def splits_table(
        self,
        splits: Sequence[Split],
        question_key: str,
        display: str = "expanded",
        title: str = "Splits",
    ) -> None:
        """Render count, weight and proportions of every split for one question."""
        if self.disabled:
            return
        rows = []
        for idx, split in enumerate(splits):
            rq_stats = split.stats_for(question_key)
            if rq_stats is None:
                continue
            rows.append(
                [
                    idx,
                    format_groups(split.groups),
                    "basis" if split.is_basis else "",
                    split.total_count,
                    f"{split.total_weight:.3f}",
                    format_proportions(rg.proportion for rg in rq_stats.groups(display)),
                ]
            )
        self.table(
            rows,
            headers=["#", "Groups", "", "Count", "Weight", f"{display} proportions"],
            title=title,
        )
