# modules/cvd/delta.py

from .models import BULLISH, BEARISH, NEUTRAL

BULLISH_BUY_PCT = 60.0
BEARISH_BUY_PCT = 40.0


def buy_percentage(buy_volume, sell_volume):
    """Доля агрессивных покупок в процентах, None при нулевом объёме"""
    total = buy_volume + sell_volume
    if total == 0:
        return None
    return buy_volume * 100 / total


def calculate_delta_pressure(buy_volume, sell_volume):
    """
    Давление дельты по батчу: >=60% покупок - BULLISH, <40% - BEARISH
    """
    buy_pct = buy_percentage(buy_volume, sell_volume)
    if buy_pct is None:
        return NEUTRAL
    if buy_pct >= BULLISH_BUY_PCT:
        return BULLISH
    if buy_pct < BEARISH_BUY_PCT:
        return BEARISH
    return NEUTRAL
