"""Two-proportion z-test for comparing a treatment arm against the control."""
import math
from dataclasses import dataclass

# Abramowitz & Stegun 7.1.26 rational approximation of erf (used via 26.2.17
# for the normal CDF). Coefficients must stay exact.
A1 = 0.254829592
A2 = -0.284496736
A3 = 1.421413741
A4 = -1.453152027
A5 = 1.061405429
P_CONST = 0.3275911

MIN_IMPRESSIONS = 10


@dataclass(frozen=True)
class SignificanceResult:
    """Outcome of a significance check."""
    is_significant: bool
    confidence: float


NOT_SIGNIFICANT = SignificanceResult(is_significant=False, confidence=0.0)


def normal_cdf(z: float) -> float:
    """Standard normal CDF approximated with the A&S erf polynomial."""
    sign = -1.0 if z < 0 else 1.0
    x = abs(z) / math.sqrt(2.0)

    t = 1.0 / (1.0 + P_CONST * x)
    y = 1.0 - (((((A5 * t + A4) * t + A3) * t + A2) * t + A1) * t) * math.exp(-x * x)

    return 0.5 * (1.0 + sign * y)


def calculate_significance(
    p1: float,
    n1: int,
    p2: float,
    n2: int,
    required_confidence: float
) -> SignificanceResult:
    """
    Compare two conversion rates with a pooled two-proportion z-test.

    Args:
        p1: Control conversion rate as a fraction (0-1)
        n1: Control impressions
        p2: Treatment conversion rate as a fraction (0-1)
        n2: Treatment impressions
        required_confidence: Confidence needed to call the result significant

    Returns:
        SignificanceResult. Arms with fewer than 10 impressions and degenerate
        pooled variance yield a non-significant result with zero confidence
        rather than an error.

    Example:
        >>> calculate_significance(0.40, 100, 0.60, 100, 0.95)
        SignificanceResult(is_significant=True, confidence=0.9976...)
    """
    if n1 < MIN_IMPRESSIONS or n2 < MIN_IMPRESSIONS:
        return NOT_SIGNIFICANT

    # Pooled proportion under the null hypothesis
    p = (p1 * n1 + p2 * n2) / (n1 + n2)

    # Rates above 1 (repeated events per session) make the variance negative
    variance = p * (1 - p) * (1 / n1 + 1 / n2)
    if variance <= 0:
        return NOT_SIGNIFICANT

    se = math.sqrt(variance)
    z = abs(p2 - p1) / se
    confidence = normal_cdf(z)

    return SignificanceResult(
        is_significant=confidence >= required_confidence,
        confidence=confidence
    )
