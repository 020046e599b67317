"""
Price synthesizer.

Turns the net RMB cost per bag into a USD sell price under a margin-on-sell
formula, and derives gross profit. Pure math.

cost_usd = net_rmb / fx_rate
sell_usd = cost_usd / (1 - margin_pct)
sell_rmb = sell_usd * fx_rate
gp_rmb   = sell_rmb - net_rmb        (per bag; total = per bag * bags)
"""

import math
from typing import NamedTuple

from .errors import MarginOutOfRangeError, ensure_positive
from .schemas import QuoteResult


class SynthesizedPrice(NamedTuple):
    cost_usd_per_bag: float
    sell_usd_per_bag: float
    sell_rmb_per_bag: float
    gp_rmb_per_bag: float
    gp_rmb_total: float


def check_margin(margin_pct: float) -> float:
    """margin_pct must lie in [0, 1); 1 would mean an infinite sell price."""
    if margin_pct is None or not math.isfinite(margin_pct) or margin_pct < 0 or margin_pct >= 1:
        raise MarginOutOfRangeError(margin_pct)
    return margin_pct


class PriceSynthesizer:

    MARGIN_OPTIONS = [0, 5, 10, 15, 20, 25, 30]

    def synthesize(self, net_rmb_per_bag: float, fx_rate: float, margin_pct: float,
                   bags: int) -> SynthesizedPrice:
        ensure_positive(fx_rate, "fx_rate")
        check_margin(margin_pct)

        cost_usd = net_rmb_per_bag / fx_rate
        sell_usd = cost_usd / (1 - margin_pct)
        sell_rmb = sell_usd * fx_rate
        gp_rmb = sell_rmb - net_rmb_per_bag
        return SynthesizedPrice(
            cost_usd_per_bag=cost_usd,
            sell_usd_per_bag=sell_usd,
            sell_rmb_per_bag=sell_rmb,
            gp_rmb_per_bag=gp_rmb,
            gp_rmb_total=gp_rmb * bags,
        )

    def margin_options(self, net_rmb_per_bag: float, fx_rate: float, bags: int) -> dict:
        """
        Returns: {"0": SynthesizedPrice, "5": ..., "30": ...}
        Sell price at each standard margin, for side-by-side comparison.
        """
        return {
            str(pct): self.synthesize(net_rmb_per_bag, fx_rate, pct / 100.0, bags)
            for pct in self.MARGIN_OPTIONS
        }

    def recalculate_with_margin(self, result: QuoteResult, margin_pct: float,
                                fx_rate: float = None) -> QuoteResult:
        """
        Re-price an existing quote at a new margin (and optionally a new FX rate)
        without re-resolving any cost. Returns a new QuoteResult.
        """
        summary = result.summary
        fx = summary.fx_rate if fx_rate is None else fx_rate
        price = self.synthesize(summary.net_rmb_per_bag, fx, margin_pct, summary.bags_int)
        new_summary = summary.model_copy(update={
            "fx_rate": fx,
            "margin_pct": margin_pct,
            **price._asdict(),
        })
        return result.model_copy(update={"summary": new_summary})
