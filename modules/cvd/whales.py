# modules/cvd/whales.py

"""
Детекция китовых сделок внутри батча
Порог = средний размер сделки текущего батча * множитель (по умолчанию 10x)
"""

from .models import BUYING, SELLING, NEUTRAL, WhaleActivity

DEFAULT_WHALE_MULTIPLIER = 10
WHALE_BUYING_PCT = 65.0
WHALE_SELLING_PCT = 35.0


def average_trade_size(trades):
    """Средний объём сделки по батчу (0 для пустого батча)"""
    if not trades:
        return 0.0
    return sum(t.quantity for t in trades) / len(trades)


def whale_threshold(trades, multiplier=DEFAULT_WHALE_MULTIPLIER):
    return average_trade_size(trades) * multiplier


def determine_whale_direction(whale_buy_volume, whale_sell_volume):
    """
    Направление китов: >65% покупок - BUYING, <35% - SELLING
    """
    total = whale_buy_volume + whale_sell_volume
    if total == 0:
        return NEUTRAL

    buy_pct = whale_buy_volume * 100 / total
    if buy_pct > WHALE_BUYING_PCT:
        return BUYING
    if buy_pct < WHALE_SELLING_PCT:
        return SELLING
    return NEUTRAL


class WhaleTracker:
    """
    Накопитель китовых сделок одного батча

    Порог считается один раз до цикла по сделкам, engine вызывает add() для каждой сделки.
    """

    def __init__(self, threshold):
        self.threshold = threshold
        self.count = 0
        self.volume = 0.0
        self.buy_volume = 0.0
        self.sell_volume = 0.0

    def add(self, trade) -> bool:
        """Учитывает сделку, если она китовая. Возвращает True для китовой сделки"""
        if trade.quantity < self.threshold:
            return False

        self.count += 1
        self.volume += trade.quantity
        if trade.is_buyer_maker:
            self.sell_volume += trade.quantity
        else:
            self.buy_volume += trade.quantity
        return True

    def summary(self) -> WhaleActivity:
        return WhaleActivity(
            large_trade_threshold=self.threshold,
            whale_trades_count=self.count,
            whale_volume=self.volume,
            whale_buy_volume=self.buy_volume,
            whale_sell_volume=self.sell_volume,
            whale_direction=determine_whale_direction(self.buy_volume, self.sell_volume),
        )
