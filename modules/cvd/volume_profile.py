# modules/cvd/volume_profile.py

"""
Volume Profile - распределение объёмов по ценовым уровням
Уровни по $1 (округление цены до целого), копятся за всё время жизни символа
"""

import math

from .models import VolumeNode, VolumeProfile, VolumeProfileSummary

DEFAULT_TOP_NODES = 20


def price_level(price):
    """
    Ценовой уровень для группировки: округление до ближайшего целого, .5 вверх

    Приближение, не учитывает реальный tick size биржи.
    NaN и inf возвращаются как есть: уровень копится под этим ключом и попадает в снимок.
    """
    if not math.isfinite(price):
        return price
    return int(math.floor(price + 0.5))


def build_nodes(volume_nodes):
    """
    Превращает накопители {level: {"buy", "sell"}} в VolumeNode,
    отсортированные по объёму (descending), при равенстве - по цене (ascending)
    """
    nodes = [
        VolumeNode(
            price=level,
            volume=data["buy"] + data["sell"],
            buy_volume=data["buy"],
            sell_volume=data["sell"],
        )
        for level, data in volume_nodes.items()
    ]
    nodes.sort(key=lambda n: (-n.volume, n.price))
    return nodes


def find_poc(nodes):
    """
    PoC (Point of Control) - уровень с максимальным объёмом

    nodes уже отсортированы build_nodes, так что при равных объёмах выигрывает меньшая цена.
    Возвращает None, если нет уровня с объёмом > 0.
    """
    if not nodes or nodes[0].volume <= 0:
        return None
    return nodes[0].price


def calculate_volume_profile(volume_nodes, vwap, top_n=DEFAULT_TOP_NODES):
    """
    Рассчитывает Volume Profile для снимка CVDData

    Args:
        volume_nodes: накопители уровня символа
        vwap: VWAP текущего батча (PoC по умолчанию, если уровней нет)
        top_n: сколько уровней вернуть

    Returns:
        VolumeProfile
    """
    nodes = build_nodes(volume_nodes)
    poc = find_poc(nodes)

    return VolumeProfile(
        vwap=vwap,
        poc=vwap if poc is None else poc,
        volume_nodes=nodes[:top_n],
    )


def summarize_volume_profile(volume_nodes):
    """
    Краткая сводка профиля: PoC, общий объём, доминирование покупок (%)

    Returns:
        VolumeProfileSummary или None, если уровней нет
    """
    if not volume_nodes:
        return None

    nodes = build_nodes(volume_nodes)
    poc = find_poc(nodes)
    total_volume = sum(n.volume for n in nodes)
    total_buy = sum(n.buy_volume for n in nodes)

    return VolumeProfileSummary(
        poc=0 if poc is None else poc,
        total_volume=total_volume,
        buy_dominance=(total_buy / total_volume) * 100 if total_volume > 0 else 50.0,
    )
