# api/data_feed.py

import time
import logging

import pandas as pd

from modules.cvd.models import Trade
from .binance_client import BinanceFuturesClient

logger = logging.getLogger(__name__)

AGG_TRADE_COLUMNS = ['a', 'p', 'q', 'T', 'm']


class DataFeed:
    """
    Загрузчик батчей сделок для CVD engine

    Каждый вызов get_trades отдаёт только сделки, которых не было в прошлых опросах символа.
    """

    def __init__(self, config=None, client=None, health_monitor=None):
        self.config = config
        self.client = client or BinanceFuturesClient(
            base_url=getattr(config, 'BINANCE_FUTURES_BASE_URL', "https://fapi.binance.com"),
            timeout=getattr(config, 'REQUEST_TIMEOUT', 10)
        )
        self.health_monitor = health_monitor
        self.limit = getattr(config, 'AGG_TRADES_LIMIT', 1000)
        self._last_trade_id = {}
        self._fetch_timestamp = None

    def get_fetch_timestamp(self):
        """Время последнего запроса в мс"""
        return self._fetch_timestamp

    @staticmethod
    def trades_to_frame(payload):
        """
        aggTrades → DataFrame с колонками [id, price, quantity, time, is_buyer_maker]
        """
        df = pd.DataFrame(payload)
        if df.empty or not set(AGG_TRADE_COLUMNS).issubset(df.columns):
            return pd.DataFrame(columns=['id', 'price', 'quantity', 'time', 'is_buyer_maker'])

        df = df[AGG_TRADE_COLUMNS].copy().rename(columns={
            'a': 'id',
            'p': 'price',
            'q': 'quantity',
            'T': 'time',
            'm': 'is_buyer_maker'
        })
        for col in ['id', 'price', 'quantity', 'time']:
            df[col] = pd.to_numeric(df[col], errors='coerce')
        df = df.dropna(subset=['id', 'price', 'quantity'])
        df['is_buyer_maker'] = df['is_buyer_maker'].astype(bool)
        df = df.astype({'id': 'int64'})
        return df.sort_values('id').reset_index(drop=True)

    async def get_trades(self, symbol):
        """
        Получение новых сделок символа

        Returns:
            List[Trade] в порядке исполнения (пустой при ошибке API)
        """
        self._fetch_timestamp = int(time.time() * 1000)
        last_id = self._last_trade_id.get(symbol)
        if last_id is None:
            payload = self.client.get_agg_trades(symbol, limit=self.limit)
        else:
            # Продолжаем с курсора, иначе при >limit сделок между опросами часть теряется
            payload = self.client.get_agg_trades(symbol, limit=self.limit, from_id=last_id + 1)

        if self.health_monitor:
            self.health_monitor.record_api_call(success=payload is not None)
        if not payload:
            if payload is None:
                logger.warning(f"Нет сделок для {symbol}: ошибка API")
            return []

        df = self.trades_to_frame(payload)

        if last_id is not None:
            df = df[df['id'] > last_id]
        if df.empty:
            return []

        first_id = int(df['id'].iloc[0])
        if last_id is not None and first_id > last_id + 1:
            logger.warning(f"⚠️ {symbol}: пропуск aggTrades {last_id + 1}..{first_id - 1}, CVD может быть занижен")
        if last_id is not None and len(df) >= self.limit:
            logger.info(f"{symbol}: получен полный батч ({len(df)} сделок), догоняем в следующих опросах")

        self._last_trade_id[symbol] = int(df['id'].iloc[-1])

        return [
            Trade(
                id=int(row.id),
                price=float(row.price),
                quantity=float(row.quantity),
                time=0 if pd.isna(row.time) else int(row.time),
                is_buyer_maker=bool(row.is_buyer_maker)
            )
            for row in df.itertuples(index=False)
        ]
