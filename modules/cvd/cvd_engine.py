# modules/cvd/cvd_engine.py

"""
CVD Engine - накопительная дельта объёмов по батчам сделок
Один вызов process_trade_batch = один слот истории (по умолчанию 1 слот ≈ 1 минута опроса)
"""

import time
import logging

from modules.utils.trade_validator import TradeValidator
from .cvd_state import CVDStateStore, DEFAULT_HISTORY_SIZE
from .cvd_trend import analyze_cvd_trend, calculate_slope, cvd_changes
from .delta import calculate_delta_pressure
from .divergence import detect_divergence
from .models import CVDData, NEUTRAL
from .volume_profile import (
    DEFAULT_TOP_NODES,
    calculate_volume_profile,
    price_level,
    summarize_volume_profile,
)
from .whales import DEFAULT_WHALE_MULTIPLIER, WhaleTracker, whale_threshold

logger = logging.getLogger(__name__)

# Окна истории в слотах (1 слот = 1 интервал опроса)
SLOTS_1H = 60
SLOTS_4H = 240
SLOTS_24H = 1440


class CVDEngine:
    """
    Рассчитывает CVD, volume profile, китов и дивергенции по батчам сделок

    Состояние символов живёт в CVDStateStore, который передаётся снаружи
    (или создаётся engine, если store не передан).
    """

    def __init__(self, config=None, store=None, strict=None):
        self.config = config
        history_size = getattr(config, 'CVD_HISTORY_SIZE', DEFAULT_HISTORY_SIZE) if config else DEFAULT_HISTORY_SIZE
        self.store = store if store is not None else CVDStateStore(history_size=history_size)
        self.whale_multiplier = getattr(config, 'WHALE_MULTIPLIER', DEFAULT_WHALE_MULTIPLIER) if config else DEFAULT_WHALE_MULTIPLIER
        self.top_nodes = getattr(config, 'VOLUME_NODES_TOP_N', DEFAULT_TOP_NODES) if config else DEFAULT_TOP_NODES
        if strict is None:
            strict = getattr(config, 'STRICT_TRADE_VALIDATION', False) if config else False
        self.strict = strict
        self.validator = TradeValidator(config) if strict else None

    def process_trade_batch(self, symbol: str, trades: list) -> CVDData:
        """
        Главный метод: обрабатывает батч сделок символа и возвращает снимок CVD

        Args:
            symbol: символ (например, BTCUSDT)
            trades: список Trade в порядке исполнения (может быть пустым)

        Returns:
            CVDData
        """
        trades = list(trades or [])
        if self.validator:
            # Строгий режим: невалидный батч не трогает состояние
            self.validator.ensure_valid(trades)

        state = self.store.get_or_create(symbol)
        cvd = state.current_cvd

        buy_volume = 0.0
        sell_volume = 0.0
        total_volume = 0.0
        vwap_numerator = 0.0

        # Порог китов считается по текущему батчу, не по истории
        whales = WhaleTracker(whale_threshold(trades, self.whale_multiplier))

        for trade in trades:
            volume = trade.quantity
            total_volume += volume
            vwap_numerator += trade.price * volume

            state.add_volume(price_level(trade.price), volume, trade.is_buy)

            if trade.is_buyer_maker:
                sell_volume += volume
                cvd -= volume
            else:
                buy_volume += volume
                cvd += volume

            whales.add(trade)

        state.append_cvd(cvd)

        vwap = vwap_numerator / total_volume if total_volume > 0 else 0.0
        divergence = detect_divergence(trades, cvd, state.previous_cvd)
        whale_activity = whales.summary()

        snapshot = CVDData(
            symbol=symbol,
            cvd=cvd,
            cvd_change_1h=state.change_over(SLOTS_1H),
            cvd_change_4h=state.change_over(SLOTS_4H),
            cvd_change_24h=state.change_over(SLOTS_24H),
            buy_volume=buy_volume,
            sell_volume=sell_volume,
            delta_pressure=calculate_delta_pressure(buy_volume, sell_volume),
            volume_profile=calculate_volume_profile(state.volume_nodes, vwap, top_n=self.top_nodes),
            divergence_signals=divergence,
            whale_activity=whale_activity,
            timestamp=int(time.time() * 1000),
            trade_count=len(trades),
        )

        logger.debug(
            f"{symbol}: {len(trades)} trades, buy={buy_volume:.4f}, sell={sell_volume:.4f}, "
            f"CVD={cvd:.4f}, pressure={snapshot.delta_pressure}"
        )
        if divergence.price_cvd_divergence:
            logger.info(f"🔀 {symbol}: {divergence.divergence_type} дивергенция цена/CVD ({divergence.strength})")
        if whale_activity.whale_trades_count and whale_activity.whale_direction != NEUTRAL:
            logger.info(
                f"🐋 {symbol}: киты {whale_activity.whale_direction}, "
                f"{whale_activity.whale_trades_count} сделок, объём {whale_activity.whale_volume:.4f}"
            )

        return snapshot

    def reset_symbol_data(self, symbol: str):
        """Сбрасывает историю CVD и volume profile символа"""
        self.store.reset(symbol)

    def get_current_cvd(self, symbol: str) -> float:
        """Текущий CVD символа, 0 если символ ещё не обрабатывался"""
        state = self.store.get(symbol)
        return state.current_cvd if state else 0.0

    def get_volume_profile_summary(self, symbol: str):
        """
        Сводка volume profile символа

        Returns:
            VolumeProfileSummary или None, если уровней ещё нет
        """
        state = self.store.get(symbol)
        if state is None:
            return None
        return summarize_volume_profile(state.volume_nodes)

    def get_cvd_history(self, symbol: str) -> list:
        state = self.store.get(symbol)
        return list(state.cvd_history) if state else []

    def get_cvd_trend(self, symbol: str, periods=5, slope_window=20) -> dict:
        """
        Тренд CVD символа

        Returns:
            dict: {"trend": BULLISH|BEARISH|NEUTRAL, "slope": float, "points": int}
        """
        history = self.get_cvd_history(symbol)
        return {
            "trend": analyze_cvd_trend(cvd_changes(history), periods=periods),
            "slope": calculate_slope(history[-slope_window:]),
            "points": len(history)
        }

    def symbols(self) -> list:
        return self.store.symbols()
