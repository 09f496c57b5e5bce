# modules/utils/healthcheck.py

"""
Healthcheck и мониторинг процесса CVD
"""

import time
import psutil
import logging
from collections import deque

logger = logging.getLogger(__name__)


class HealthMonitor:
    """
    Мониторинг здоровья: батчи, ошибки, успешность API, системные метрики
    """

    def __init__(self, poll_interval=60):
        self.poll_interval = poll_interval
        self.start_time = time.time()
        self.last_batch_time = None
        self.batch_count = 0
        self.trade_count = 0
        self.error_count = 0
        self.api_call_count = 0
        self.api_error_count = 0

        # История последних батчей
        self.metrics_history = deque(maxlen=100)

        # Счётчики батчей по символам
        self.batches_by_symbol = {}

    def uptime_seconds(self):
        """Возвращает время работы в секундах"""
        return time.time() - self.start_time

    def record_batch(self, symbol, trade_count, cvd=None):
        """Записывает обработанный батч"""
        self.last_batch_time = time.time()
        self.batch_count += 1
        self.trade_count += trade_count
        self.batches_by_symbol[symbol] = self.batches_by_symbol.get(symbol, 0) + 1
        self.metrics_history.append({
            "symbol": symbol,
            "trades": trade_count,
            "cvd": cvd,
            "ts": self.last_batch_time
        })

    def record_error(self):
        """Записывает ошибку"""
        self.error_count += 1

    def record_api_call(self, success=True):
        """Записывает API вызов"""
        self.api_call_count += 1
        if not success:
            self.api_error_count += 1

    def get_system_metrics(self):
        """Возвращает системные метрики (CPU, память)"""
        try:
            cpu_percent = psutil.cpu_percent(interval=0.1)
            memory = psutil.virtual_memory()

            return {
                "cpu_percent": cpu_percent,
                "memory_percent": memory.percent,
                "memory_available_mb": memory.available / (1024 * 1024)
            }
        except Exception as e:
            logger.error(f"Ошибка получения системных метрик: {e}")
            return {
                "cpu_percent": 0,
                "memory_percent": 0,
                "memory_available_mb": 0
            }

    def get_status(self):
        """
        Возвращает полный статус процесса

        Returns:
            dict: {
                "status": "healthy"|"degraded"|"unhealthy",
                "uptime_seconds": float,
                "last_batch_seconds_ago": float,
                "batch_count": int,
                "api_success_rate": float,
                "system": dict,
                ...
            }
        """
        uptime = self.uptime_seconds()
        last_batch_ago = (time.time() - self.last_batch_time) if self.last_batch_time else None

        api_success_rate = 1.0
        if self.api_call_count > 0:
            api_success_rate = 1.0 - (self.api_error_count / self.api_call_count)

        status = "healthy"

        # Unhealthy: батчей нет дольше 10 интервалов опроса или API успешен < 50%
        if last_batch_ago and last_batch_ago > self.poll_interval * 10:
            status = "unhealthy"
            logger.warning(f"⚠️ Unhealthy: Нет батчей {last_batch_ago:.0f}s")
        elif api_success_rate < 0.5:
            status = "unhealthy"
            logger.warning(f"⚠️ Unhealthy: API success rate {api_success_rate:.1%}")
        # Degraded: батчей нет дольше 5 интервалов или API успешен 50-80%
        elif last_batch_ago and last_batch_ago > self.poll_interval * 5:
            status = "degraded"
        elif api_success_rate < 0.8:
            status = "degraded"

        return {
            "status": status,
            "uptime_seconds": uptime,
            "uptime_hours": uptime / 3600,
            "last_batch_seconds_ago": last_batch_ago,
            "batch_count": self.batch_count,
            "trade_count": self.trade_count,
            "batches_by_symbol": dict(self.batches_by_symbol),
            "error_count": self.error_count,
            "api_calls": self.api_call_count,
            "api_errors": self.api_error_count,
            "api_success_rate": api_success_rate,
            "system": self.get_system_metrics()
        }

    def log_status(self):
        """Логирует текущий статус"""
        status = self.get_status()
        status_icon = {
            "healthy": "✅",
            "degraded": "⚠️",
            "unhealthy": "❌"
        }
        icon = status_icon.get(status["status"], "❓")

        logger.info(
            f"{icon} Status: {status['status']}, Uptime: {status['uptime_hours']:.1f}h, "
            f"Batches: {status['batch_count']}, API Success: {status['api_success_rate']:.1%}"
        )
        return status
