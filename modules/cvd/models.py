# modules/cvd/models.py

"""
Модели данных CVD engine: входные сделки и снимок CVDData
"""

from dataclasses import dataclass, field, asdict
from typing import List


# Метки, которые отдаёт engine
BULLISH = "BULLISH"
BEARISH = "BEARISH"
NEUTRAL = "NEUTRAL"
NONE = "NONE"

WEAK = "WEAK"
MODERATE = "MODERATE"
STRONG = "STRONG"

BUYING = "BUYING"
SELLING = "SELLING"


@dataclass(frozen=True)
class Trade:
    """
    Одна исполненная сделка (aggTrade)

    is_buyer_maker=True  → покупатель стоял в стакане, агрессор продавец (sell)
    is_buyer_maker=False → агрессор покупатель (buy)
    """
    id: int
    price: float
    quantity: float
    time: int
    is_buyer_maker: bool

    @property
    def is_buy(self) -> bool:
        return not self.is_buyer_maker


@dataclass(frozen=True)
class VolumeNode:
    price: int
    volume: float
    buy_volume: float
    sell_volume: float


@dataclass(frozen=True)
class VolumeProfile:
    vwap: float
    poc: float
    volume_nodes: List[VolumeNode] = field(default_factory=list)


@dataclass(frozen=True)
class VolumeProfileSummary:
    poc: float
    total_volume: float
    buy_dominance: float


@dataclass(frozen=True)
class DivergenceSignal:
    price_cvd_divergence: bool = False
    divergence_type: str = NONE
    strength: str = WEAK


@dataclass(frozen=True)
class WhaleActivity:
    large_trade_threshold: float
    whale_trades_count: int
    whale_volume: float
    whale_buy_volume: float
    whale_sell_volume: float
    whale_direction: str


@dataclass(frozen=True)
class CVDData:
    """
    Снимок CVD для одного вызова process_trade_batch

    buy_volume / sell_volume / whale_activity посчитаны только по текущему батчу,
    cvd и volume_profile.volume_nodes - накопленные с момента создания (или reset) символа.
    """
    symbol: str
    cvd: float
    cvd_change_1h: float
    cvd_change_4h: float
    cvd_change_24h: float
    buy_volume: float
    sell_volume: float
    delta_pressure: str
    volume_profile: VolumeProfile
    divergence_signals: DivergenceSignal
    whale_activity: WhaleActivity
    timestamp: int
    trade_count: int = 0

    @property
    def delta(self) -> float:
        """Дельта текущего батча (buy - sell)"""
        return self.buy_volume - self.sell_volume

    def to_dict(self) -> dict:
        """Словарь для JSON / дашборда"""
        data = asdict(self)
        data["delta"] = self.delta
        return data
