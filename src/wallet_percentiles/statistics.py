"""
Sample size derivation for the random wallet survey.
"""

import math
from typing import Optional

# Two-sided Z scores by confidence level (percent)
Z_SCORES = {
    90: 1.645,
    95: 1.96,
    99: 2.576,
}
DEFAULT_Z_SCORE = Z_SCORES[95]


def z_score(confidence_level: int) -> float:
    """Z score for a confidence level, falling back to 95%."""
    return Z_SCORES.get(confidence_level, DEFAULT_Z_SCORE)


def calculate_sample_size(confidence_level: int, margin_of_error: float,
                          population_size: Optional[int] = None,
                          proportion: float = 0.5) -> int:
    """Number of wallets to analyze for the requested precision.

    Uses n0 = Z^2 * p * (1 - p) / e^2 and, when a population size N is given,
    the finite population correction n = n0 * N / (n0 + N - 1). The result is
    rounded up.
    """
    z = z_score(confidence_level)
    sample_size = (z ** 2) * proportion * (1 - proportion) / (margin_of_error ** 2)

    if population_size:
        sample_size = (sample_size * population_size) / (sample_size + population_size - 1)

    return math.ceil(sample_size)
