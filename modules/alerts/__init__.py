"""
Alerts - оповещения о дивергенциях, китах и смене давления
"""

from .alert_manager import AlertManager

__all__ = ['AlertManager']
