"""
Конфигурация проекта CVD Engine
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Определяем путь к .env файлу (в корне проекта)
env_path = Path(__file__).parent / '.env'

# Загрузка переменных окружения из .env файла
if env_path.exists():
    load_dotenv(dotenv_path=env_path, override=True)
else:
    # Пробуем загрузить из текущей директории
    load_dotenv(override=True)


def _env_bool(name, default):
    return os.getenv(name, default).lower() == "true"


class Config:
    """Класс для хранения всех настроек проекта"""

    # ============================================
    # BINANCE FUTURES (публичные market data)
    # ============================================
    BINANCE_FUTURES_BASE_URL: str = os.getenv("BINANCE_FUTURES_BASE_URL", "https://fapi.binance.com")
    AGG_TRADES_LIMIT: int = int(os.getenv("AGG_TRADES_LIMIT", "1000"))
    REQUEST_TIMEOUT: int = int(os.getenv("REQUEST_TIMEOUT", "10"))

    # ============================================
    # СИМВОЛЫ И ОПРОС
    # ============================================
    DEFAULT_SYMBOLS: str = os.getenv("DEFAULT_SYMBOLS", "BTCUSDT")
    # Один опрос = один слот истории CVD. При 60s окна 60/240/1440 слотов = 1h/4h/24h
    POLL_INTERVAL_SECONDS: int = int(os.getenv("POLL_INTERVAL_SECONDS", "60"))

    # ============================================
    # CVD ENGINE
    # ============================================
    CVD_HISTORY_SIZE: int = int(os.getenv("CVD_HISTORY_SIZE", "1440"))
    WHALE_MULTIPLIER: float = float(os.getenv("WHALE_MULTIPLIER", "10"))
    VOLUME_NODES_TOP_N: int = int(os.getenv("VOLUME_NODES_TOP_N", "20"))
    STRICT_TRADE_VALIDATION: bool = _env_bool("STRICT_TRADE_VALIDATION", "False")
    MAX_REPORTED_TRADE_ISSUES: int = int(os.getenv("MAX_REPORTED_TRADE_ISSUES", "10"))

    # ============================================
    # АЛЕРТЫ И ЗДОРОВЬЕ
    # ============================================
    ALERT_COOLDOWN_MINUTES: int = int(os.getenv("ALERT_COOLDOWN_MINUTES", "15"))
    HEALTH_LOG_EVERY: int = int(os.getenv("HEALTH_LOG_EVERY", "10"))  # каждые N циклов

    # ============================================
    # ПУТИ
    # ============================================
    LOGS_DIR: str = os.getenv("LOGS_DIR", "logs")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def __init__(self):
        """Инициализация и создание необходимых директорий"""
        os.makedirs(self.LOGS_DIR, exist_ok=True)

    @property
    def symbols(self) -> list:
        """Список символов из DEFAULT_SYMBOLS (через запятую)"""
        return [s.strip().upper() for s in self.DEFAULT_SYMBOLS.split(",") if s.strip()]
