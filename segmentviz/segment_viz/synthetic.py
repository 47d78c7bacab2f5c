"""
Largest-remainder allocation of a fixed-size synthetic sample.
"""

from typing import List, Sequence

import numpy as np
from numpy.typing import NDArray


def allocate_synthetic_counts(
    proportions: Sequence[float], sample_size: int
) -> List[int]:
    """
    Turn response group proportions into integer point counts summing to ``sample_size``.

    Each group first gets ``floor(p * N)``. The shortfall is then handed out
    one unit at a time in order of descending remainder, ties going to the
    earlier group. When the shortfall exceeds the number of groups (all-zero
    or under-filled proportions) the hand-out wraps around in the same order.

    Parameters:
    -----------
    proportions : Sequence[float]
        Response group proportions. Negative or non-finite entries count as 0;
        vectors summing to more than 1 are rescaled to sum to 1.
    sample_size : int
        Target number of points. Negative sizes yield all zeros.

    Returns:
    --------
    List[int]
        One count per group. Sums to ``sample_size`` whenever there is at
        least one group and ``sample_size >= 0``.
    """
    n_groups = len(proportions)
    if n_groups == 0:
        return []
    if sample_size <= 0:
        return [0] * n_groups

    p: NDArray[np.float64] = np.asarray(proportions, dtype=float)
    p = np.where(np.isfinite(p) & (p > 0), p, 0.0)
    total = p.sum()
    if total > 1.0:
        p = p / total

    raw = p * sample_size
    counts = np.floor(raw).astype(np.int64)
    remainders = raw - counts

    shortfall = int(sample_size - counts.sum())
    if shortfall > 0:
        # Stable sort keeps the input group order among equal remainders.
        order = np.argsort(-remainders, kind="stable")
        for i in range(shortfall):
            counts[order[i % n_groups]] += 1

    return [int(c) for c in counts]
