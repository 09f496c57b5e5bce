"""
API модули - Связь с биржей
"""

from .binance_client import BinanceFuturesClient
from .data_feed import DataFeed

__all__ = [
    'BinanceFuturesClient',
    'DataFeed'
]
