# api/binance_client.py

import logging
import requests
from urllib.parse import urlencode

logger = logging.getLogger(__name__)


class BinanceFuturesClient:
    """
    Клиент для публичных market-data эндпоинтов Binance USDⓈ-M Futures (REST)
    """

    def __init__(self, base_url="https://fapi.binance.com", timeout=10, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, endpoint, params):
        url = f"{self.base_url}{endpoint}?{urlencode(params)}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"API request failed: {endpoint} - {e}")
            return None

        if response.status_code != 200:
            logger.error(f"API Error: {response.status_code} - {response.text[:200]}")
            return None

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"API returned invalid JSON: {endpoint} - {e}")
            return None

    def get_agg_trades(self, symbol, limit=1000, from_id=None):
        """
        Получение агрегированных сделок

        Args:
            symbol: символ (например, BTCUSDT)
            limit: количество сделок (максимум 1000)
            from_id: начиная с aggregate trade id (включительно)

        Returns:
            List сделок [{"a", "p", "q", "f", "l", "T", "m"}, ...] или None
        """
        params = {
            "symbol": symbol,
            "limit": limit
        }
        if from_id is not None:
            params["fromId"] = from_id

        result = self._get("/fapi/v1/aggTrades", params)
        if result is not None and not isinstance(result, list):
            logger.error(f"Unexpected aggTrades payload: {str(result)[:200]}")
            return None
        return result
