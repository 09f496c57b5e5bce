"""
CVD Engine (Cumulative Volume Delta)
Накопительная дельта, volume profile, киты и дивергенции по батчам сделок
"""

from .cvd_engine import CVDEngine
from .cvd_state import CVDStateStore, SymbolState
from .models import (
    Trade,
    CVDData,
    VolumeNode,
    VolumeProfile,
    VolumeProfileSummary,
    DivergenceSignal,
    WhaleActivity
)

__all__ = [
    'CVDEngine',
    'CVDStateStore',
    'SymbolState',
    'Trade',
    'CVDData',
    'VolumeNode',
    'VolumeProfile',
    'VolumeProfileSummary',
    'DivergenceSignal',
    'WhaleActivity'
]
