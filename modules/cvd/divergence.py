# modules/cvd/divergence.py

"""
Дивергенция цена / CVD внутри батча
Цена падает, а CVD растёт - скрытое накопление (BULLISH)
Цена растёт, а CVD падает - скрытое распределение (BEARISH)
"""

from modules.utils.math_tools import calculate_percentage_change
from .models import BULLISH, BEARISH, NONE, WEAK, MODERATE, STRONG, DivergenceSignal

PRICE_MOVE_THRESHOLD_PCT = 0.1
CVD_NORMALIZATION = 1_000_000
STRONG_THRESHOLD = 2.0
MODERATE_THRESHOLD = 1.0


def divergence_strength(price_change_pct, cvd_change):
    """
    Сила дивергенции = |изменение цены %| + |изменение CVD / 1M|

    Смешивает проценты и объём, шкала сохранена ради совместимости с потребителями.
    """
    value = abs(price_change_pct) + abs(cvd_change / CVD_NORMALIZATION)
    if value > STRONG_THRESHOLD:
        return STRONG
    if value > MODERATE_THRESHOLD:
        return MODERATE
    return WEAK


def detect_divergence(trades, current_cvd, previous_cvd):
    """
    Детектирует дивергенцию между ценой батча и изменением CVD

    Args:
        trades: сделки батча в порядке исполнения
        current_cvd: CVD после батча
        previous_cvd: CVD предыдущего вызова (None, если истории меньше 2 точек)

    Returns:
        DivergenceSignal
    """
    if not trades or previous_cvd is None:
        return DivergenceSignal()

    first_price = trades[0].price
    last_price = trades[-1].price
    price_change = calculate_percentage_change(first_price, last_price)
    cvd_change = current_cvd - previous_cvd

    price_up = price_change > PRICE_MOVE_THRESHOLD_PCT
    price_down = price_change < -PRICE_MOVE_THRESHOLD_PCT

    divergence_type = NONE
    if price_down and cvd_change > 0:
        divergence_type = BULLISH
    elif price_up and cvd_change < 0:
        divergence_type = BEARISH

    return DivergenceSignal(
        price_cvd_divergence=divergence_type != NONE,
        divergence_type=divergence_type,
        strength=divergence_strength(price_change, cvd_change),
    )
