# modules/cvd/cvd_trend.py

"""
Тренд CVD по истории: вердикт для дашборда и наклон (slope)
"""

import numpy as np

from .models import BULLISH, BEARISH, NEUTRAL


def cvd_changes(history):
    """Изменения CVD между соседними слотами истории"""
    values = list(history)
    return [current - previous for previous, current in zip(values, values[1:])]


def analyze_cvd_trend(changes, periods=5):
    """
    Вердикт по последним `periods` изменениям CVD за слот

    >=4 положительных изменений - BULLISH, <=1 - BEARISH, иначе NEUTRAL.
    Считаются изменения, а не уровни: после долгих продаж уровень остаётся
    отрицательным, хотя покупки уже преобладают.
    Нет изменений - NEUTRAL.
    """
    if not changes:
        return NEUTRAL

    recent = list(changes)[-periods:]
    positive_count = sum(1 for v in recent if v > 0)

    if positive_count >= 4:
        return BULLISH
    if positive_count <= 1:
        return BEARISH
    return NEUTRAL


def calculate_slope(values):
    """
    Наклон линейной регрессии по точкам истории

    Returns:
        float: положительный = CVD растёт, отрицательный = падает
    """
    if len(values) < 2:
        return 0.0

    y = np.asarray(values, dtype=float)
    x = np.arange(len(y), dtype=float)
    slope, _ = np.polyfit(x, y, 1)
    return float(slope)
