"""
CVD Engine - Главная точка входа
Опрашивает aggTrades по символам, считает CVD и отправляет алерты в лог
"""

import asyncio
import logging
import os
from config import Config
from api.data_feed import DataFeed
from modules.cvd import CVDEngine, CVDStateStore
from modules.alerts import AlertManager
from modules.utils.healthcheck import HealthMonitor
from modules.utils.trade_validator import TradeValidationError

logger = logging.getLogger(__name__)


def setup_logging(config):
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(os.path.join(config.LOGS_DIR, 'cvd_engine.log')),
            logging.StreamHandler()
        ]
    )


async def poll_symbol(symbol, data_feed, engine, alert_manager, health_monitor):
    """
    Один цикл для символа: новые сделки → CVD снимок → алерты

    Returns:
        CVDData или None, если батч отклонён строгой валидацией
    """
    trades = await data_feed.get_trades(symbol)

    try:
        cvd_data = engine.process_trade_batch(symbol, trades)
    except TradeValidationError as e:
        health_monitor.record_error()
        logger.error(f"❌ {symbol}: батч отклонён валидацией ({len(e.issues)} проблем): {e}")
        return None

    health_monitor.record_batch(symbol, cvd_data.trade_count, cvd=cvd_data.cvd)
    alert_manager.process(cvd_data)
    trend = engine.get_cvd_trend(symbol)

    logger.info(
        f"📊 {symbol}: CVD={cvd_data.cvd:.2f} (Δ1h {cvd_data.cvd_change_1h:+.2f}), "
        f"buy={cvd_data.buy_volume:.2f} sell={cvd_data.sell_volume:.2f}, "
        f"pressure={cvd_data.delta_pressure}, POC={cvd_data.volume_profile.poc}, "
        f"VWAP={cvd_data.volume_profile.vwap:.2f}, trend={trend['trend']} (slope {trend['slope']:+.2f})"
    )
    return cvd_data


async def main():
    """Главная функция запуска"""
    config = Config()
    setup_logging(config)
    logger.info("🚀 Запуск CVD Engine...")

    health_monitor = HealthMonitor(poll_interval=config.POLL_INTERVAL_SECONDS)
    data_feed = DataFeed(config, health_monitor=health_monitor)
    # Store живёт всё время процесса, engine получает его явно
    store = CVDStateStore(history_size=config.CVD_HISTORY_SIZE)
    engine = CVDEngine(config, store=store)
    alert_manager = AlertManager(cooldown_minutes=config.ALERT_COOLDOWN_MINUTES)

    symbols = config.symbols
    logger.info(
        f"Символы: {', '.join(symbols)}; опрос каждые {config.POLL_INTERVAL_SECONDS}s "
        f"(1 слот истории CVD = 1 опрос, окна 60/240/1440 слотов)"
    )

    cycle = 0
    try:
        while True:
            for symbol in symbols:
                try:
                    await poll_symbol(symbol, data_feed, engine, alert_manager, health_monitor)
                except Exception:
                    health_monitor.record_error()
                    logger.exception(f"Ошибка обработки {symbol}")

            cycle += 1
            if cycle % config.HEALTH_LOG_EVERY == 0:
                health_monitor.log_status()

            await asyncio.sleep(config.POLL_INTERVAL_SECONDS)
    except asyncio.CancelledError:
        logger.info("Остановка CVD Engine")
        raise


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("⏹ Остановлено пользователем")
