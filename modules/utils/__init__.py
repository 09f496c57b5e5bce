"""
Utils - Вспомогательные инструменты
"""

from .math_tools import calculate_percentage_change
from .trade_validator import TradeValidator, TradeValidationError
from .healthcheck import HealthMonitor

__all__ = [
    'calculate_percentage_change',
    'TradeValidator',
    'TradeValidationError',
    'HealthMonitor'
]
