# modules/alerts/alert_manager.py

"""
Менеджер алертов по снимкам CVD
Оповещает о дивергенциях цена/CVD, активности китов и смене давления дельты
"""

import logging
from collections import deque
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)


class AlertManager:
    """
    Управляет алертами о важных событиях CVD
    """

    def __init__(self, cooldown_minutes=15):
        self.last_alerts = deque(maxlen=50)  # История последних алертов
        self.last_pressure = {}  # symbol -> последнее BULLISH/BEARISH давление
        self.last_alert_time = {}  # (symbol, type) -> datetime
        self.cooldown_minutes = cooldown_minutes  # Минимум между похожими алертами

    def _in_cooldown(self, symbol, alert_type, now):
        last_time = self.last_alert_time.get((symbol, alert_type))
        if last_time is None:
            return False
        elapsed = (now - last_time).total_seconds() / 60
        return elapsed < self.cooldown_minutes

    def _emit(self, alert):
        self.last_alert_time[(alert["symbol"], alert["type"])] = alert["timestamp"]
        self.last_alerts.append(alert)
        logger.warning(f"🚨 АЛЕРТ: {alert['message']}")
        return alert

    def check_divergence(self, cvd_data, now=None):
        """
        Проверяет дивергенцию цена/CVD и генерирует алерт

        Args:
            cvd_data: снимок CVDData
            now: текущее время (для тестов)

        Returns:
            dict: алерт или None
        """
        divergence = cvd_data.divergence_signals
        if not divergence.price_cvd_divergence:
            return None

        now = now or datetime.now()
        if self._in_cooldown(cvd_data.symbol, "divergence", now):
            return None

        if divergence.divergence_type == "BULLISH":
            text = "🟢 Скрытое накопление: цена падает, CVD растёт"
        else:
            text = "🔴 Скрытое распределение: цена растёт, CVD падает"

        return self._emit({
            "type": "divergence",
            "severity": "high" if divergence.strength == "STRONG" else "medium",
            "symbol": cvd_data.symbol,
            "divergence_type": divergence.divergence_type,
            "strength": divergence.strength,
            "cvd": cvd_data.cvd,
            "timestamp": now,
            "message": f"{cvd_data.symbol}: {text} ({divergence.strength})"
        })

    def check_whale_activity(self, cvd_data, now=None):
        """
        Проверяет направленную активность китов (BUYING / SELLING)

        Returns:
            dict: алерт или None
        """
        whales = cvd_data.whale_activity
        if whales.whale_direction not in ("BUYING", "SELLING"):
            return None

        now = now or datetime.now()
        if self._in_cooldown(cvd_data.symbol, "whale_activity", now):
            return None

        action = "ПОКУПАЮТ" if whales.whale_direction == "BUYING" else "ПРОДАЮТ"
        return self._emit({
            "type": "whale_activity",
            "severity": "high",
            "symbol": cvd_data.symbol,
            "direction": whales.whale_direction,
            "whale_trades_count": whales.whale_trades_count,
            "whale_volume": whales.whale_volume,
            "timestamp": now,
            "message": (
                f"🐋 {cvd_data.symbol}: КИТЫ {action}! {whales.whale_trades_count} сделок, "
                f"объём {whales.whale_volume:.4f} (порог {whales.large_trade_threshold:.4f})"
            )
        })

    def check_pressure_change(self, cvd_data, now=None):
        """
        Проверяет разворот давления дельты BULLISH <-> BEARISH

        NEUTRAL не сбрасывает последнее направленное давление.

        Returns:
            dict: алерт или None
        """
        pressure = cvd_data.delta_pressure
        if pressure not in ("BULLISH", "BEARISH"):
            return None

        symbol = cvd_data.symbol
        previous = self.last_pressure.get(symbol)
        self.last_pressure[symbol] = pressure

        if previous is None or previous == pressure:
            return None

        now = now or datetime.now()
        if self._in_cooldown(symbol, "pressure_change", now):
            return None

        return self._emit({
            "type": "pressure_change",
            "severity": "medium",
            "symbol": symbol,
            "from_pressure": previous,
            "to_pressure": pressure,
            "cvd": cvd_data.cvd,
            "timestamp": now,
            "message": f"🔄 {symbol}: давление дельты {previous} → {pressure}, CVD: {cvd_data.cvd:.4f}"
        })

    def process(self, cvd_data, now=None):
        """
        Прогоняет все проверки по снимку

        Returns:
            list: новые алерты
        """
        checks = (self.check_divergence, self.check_whale_activity, self.check_pressure_change)
        alerts = []
        for check in checks:
            alert = check(cvd_data, now=now)
            if alert:
                alerts.append(alert)
        return alerts

    def get_recent_alerts(self, minutes=60, severity=None, now=None):
        """
        Получает недавние алерты

        Args:
            minutes: за последние N минут
            severity: фильтр по severity (high/medium)

        Returns:
            list: список алертов
        """
        cutoff_time = (now or datetime.now()) - timedelta(minutes=minutes)

        recent = [
            alert for alert in self.last_alerts
            if alert["timestamp"] >= cutoff_time
        ]

        if severity:
            recent = [a for a in recent if a["severity"] == severity]

        return recent
