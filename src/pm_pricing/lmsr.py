"""LMSR (Logarithmic Market Scoring Rule) pricing for binary markets.

Marginal price of a side:
    p_yes = exp(q_yes / b) / (exp(q_yes / b) + exp(q_no / b))
    p_no  = 1 - p_yes

Evaluated as a softmax with the larger exponent subtracted first, so large
accumulated counts never overflow ``math.exp``.

Prices stay strictly inside (0, 1) only while |num_yes - num_no| / b is below
about 37. Past that the smaller exponential vanishes next to 1.0 and the
leading price rounds to 1.0; when YES leads, price_no = 1 - price_yes is
exactly 0.0.
"""

import math

from src.pm_common.enums import Outcome


def lmsr_price(num_yes: int, num_no: int, liquidity: float) -> tuple[float, float]:
    """Return ``(price_yes, price_no)`` for the given aggregate counts."""
    if not (math.isfinite(liquidity) and liquidity > 0):
        raise ValueError(f"liquidity must be positive and finite, got {liquidity}")

    scaled_yes = num_yes / liquidity
    scaled_no = num_no / liquidity
    m = max(scaled_yes, scaled_no)
    exp_yes = math.exp(scaled_yes - m)
    exp_no = math.exp(scaled_no - m)

    price_yes = exp_yes / (exp_yes + exp_no)
    return price_yes, 1.0 - price_yes


def quote(side: Outcome, num_yes: int, num_no: int, liquidity: float) -> float:
    """Per-share price of ``side`` at the current counts."""
    price_yes, price_no = lmsr_price(num_yes, num_no, liquidity)
    return price_yes if side == Outcome.YES else price_no
