__all__ = [
    "SessionConfig",
    "SplitLattice",
    "build_split_lattice",
    "generate_cartesian",
    "RespondentData",
    "ResponseValue",
    "RespondentValidator",
    "ValidationVerdict",
    "create_response_map",
    "BasisResponse",
    "update_basis_split",
    "propagate_to_split",
    "no_change_diff",
    "update_all_splits",
    "Statistics",
    "StatisticsResult",
    "StatisticsUpdateResult",
    "compute_statistics",
]

from segmentviz.statistics.config import SessionConfig
from segmentviz.statistics.lattice import (
    SplitLattice,
    build_split_lattice,
    generate_cartesian,
)
from segmentviz.statistics.validation import (
    RespondentData,
    RespondentValidator,
    ResponseValue,
    ValidationVerdict,
    create_response_map,
)
from segmentviz.statistics.update import (
    BasisResponse,
    no_change_diff,
    propagate_to_split,
    update_all_splits,
    update_basis_split,
)
from segmentviz.statistics.statistics import (
    Statistics,
    StatisticsResult,
    StatisticsUpdateResult,
    compute_statistics,
)
