# tests/test_cvd_engine.py

"""
Unit тесты для CVDEngine
"""

import math

import pytest
from modules.cvd import CVDEngine, CVDStateStore, Trade
from modules.utils.trade_validator import TradeValidationError


def make_trade(trade_id, price, qty, buyer_maker, ts=1_700_000_000_000):
    return Trade(id=trade_id, price=price, quantity=qty, time=ts + trade_id, is_buyer_maker=buyer_maker)


def scenario_trades():
    return [
        make_trade(1, 50000, 1, False),
        make_trade(2, 50010, 1, True),
        make_trade(3, 50020, 0.5, False),
    ]


class TestCVDEngine:
    def setup_method(self):
        self.engine = CVDEngine()

    def test_end_to_end_batch(self):
        """Тест: базовый сценарий BTCUSDT из трёх сделок"""
        data = self.engine.process_trade_batch("BTCUSDT", scenario_trades())

        assert data.symbol == "BTCUSDT"
        assert data.buy_volume == pytest.approx(1.5)
        assert data.sell_volume == pytest.approx(1.0)
        assert data.cvd == pytest.approx(0.5)
        assert data.delta == pytest.approx(0.5)
        assert data.volume_profile.vwap == pytest.approx(50008.0)
        # 50000 и 50010 равны по объёму - выигрывает меньшая цена
        assert data.volume_profile.poc == 50000
        assert [n.price for n in data.volume_profile.volume_nodes] == [50000, 50010, 50020]
        assert data.delta_pressure == "BULLISH"  # ровно 60% покупок
        assert data.divergence_signals.price_cvd_divergence == False
        assert data.divergence_signals.divergence_type == "NONE"
        assert data.whale_activity.whale_trades_count == 0
        assert data.whale_activity.whale_direction == "NEUTRAL"
        assert data.trade_count == 3
        assert data.timestamp > 0

    def test_volume_conservation(self):
        """Тест: buy + sell = сумма объёмов батча"""
        trades = [make_trade(i, 100 + i, 0.1 * (i + 1), i % 3 == 0) for i in range(30)]

        data = self.engine.process_trade_batch("ETHUSDT", trades)

        assert data.buy_volume + data.sell_volume == pytest.approx(sum(t.quantity for t in trades))

    def test_cvd_composes_across_batches(self):
        """Тест: новый CVD = прошлый CVD + buy - sell"""
        self.engine.process_trade_batch("BTCUSDT", scenario_trades())
        previous = self.engine.get_current_cvd("BTCUSDT")

        batch = [make_trade(10, 50000, 2, True), make_trade(11, 50001, 0.25, False)]
        data = self.engine.process_trade_batch("BTCUSDT", batch)

        assert data.cvd == pytest.approx(previous + 0.25 - 2)
        assert self.engine.get_current_cvd("BTCUSDT") == pytest.approx(data.cvd)

    def test_empty_batch_keeps_cvd(self):
        """Тест: пустой батч - прежний CVD и нулевые объёмы"""
        self.engine.process_trade_batch("BTCUSDT", scenario_trades())

        data = self.engine.process_trade_batch("BTCUSDT", [])

        assert data.cvd == pytest.approx(0.5)
        assert data.buy_volume == 0
        assert data.sell_volume == 0
        assert data.delta_pressure == "NEUTRAL"
        assert data.volume_profile.vwap == 0
        # PoC берётся из накопленного профиля, а не из VWAP батча
        assert data.volume_profile.poc == 50000
        assert data.divergence_signals.price_cvd_divergence == False
        assert len(self.engine.get_cvd_history("BTCUSDT")) == 2

    def test_empty_batch_on_new_symbol(self):
        """Тест: пустой батч для нового символа"""
        data = self.engine.process_trade_batch("SOLUSDT", [])

        assert data.cvd == 0
        assert data.volume_profile.poc == 0
        assert data.volume_profile.volume_nodes == []
        assert data.whale_activity.large_trade_threshold == 0

    def test_history_is_bounded(self):
        """Тест: история не длиннее 1440, последний элемент = текущий CVD"""
        for i in range(1500):
            data = self.engine.process_trade_batch("BTCUSDT", [make_trade(i, 100, 1, False)])

        history = self.engine.get_cvd_history("BTCUSDT")
        assert len(history) == 1440
        assert history[-1] == pytest.approx(1500)
        assert history[-1] == pytest.approx(data.cvd)
        # 24h окно требует больше 1440 точек - при лимите 1440 всегда 0
        assert data.cvd_change_24h == 0

    def test_rolling_changes_need_history(self):
        """Тест: 1h/4h изменения нулевые, пока истории недостаточно"""
        for i in range(60):
            data = self.engine.process_trade_batch("BTCUSDT", [make_trade(i, 100, 1, False)])
        assert data.cvd_change_1h == 0

        data = self.engine.process_trade_batch("BTCUSDT", [make_trade(60, 100, 1, False)])
        assert data.cvd_change_1h == pytest.approx(60)
        assert data.cvd_change_4h == 0

        for i in range(61, 241):
            data = self.engine.process_trade_batch("BTCUSDT", [make_trade(i, 100, 1, False)])
        assert len(self.engine.get_cvd_history("BTCUSDT")) == 241
        assert data.cvd_change_1h == pytest.approx(60)
        assert data.cvd_change_4h == pytest.approx(240)

    def test_bullish_divergence(self):
        """Тест: цена -0.4%, CVD +200 → BULLISH дивергенция"""
        self.engine.process_trade_batch("BTCUSDT", [make_trade(1, 50000, 1000, False)])
        assert self.engine.get_current_cvd("BTCUSDT") == pytest.approx(1000)

        batch = [make_trade(2, 50000, 150, False), make_trade(3, 49800, 50, False)]
        data = self.engine.process_trade_batch("BTCUSDT", batch)

        assert data.cvd == pytest.approx(1200)
        assert data.divergence_signals.price_cvd_divergence == True
        assert data.divergence_signals.divergence_type == "BULLISH"
        assert data.divergence_signals.strength == "WEAK"

    def test_single_trade_is_not_whale(self):
        """Тест: одна сделка 5 → порог 50, не кит"""
        data = self.engine.process_trade_batch("BTCUSDT", [make_trade(1, 100, 5, False)])

        assert data.whale_activity.large_trade_threshold == pytest.approx(50)
        assert data.whale_activity.whale_trades_count == 0
        assert data.whale_activity.whale_volume == 0

    def test_whale_detected(self):
        """Тест: сделка ровно на пороге считается китовой"""
        trades = [make_trade(i, 100, 1, True) for i in range(10)]
        trades.append(make_trade(10, 100, 100, False))

        data = self.engine.process_trade_batch("BTCUSDT", trades)

        assert data.whale_activity.large_trade_threshold == pytest.approx(100)
        assert data.whale_activity.whale_trades_count == 1
        assert data.whale_activity.whale_volume == pytest.approx(100)
        assert data.whale_activity.whale_buy_volume == pytest.approx(100)
        assert data.whale_activity.whale_direction == "BUYING"

    def test_delta_pressure_boundaries(self):
        """Тест: 60% покупок - BULLISH, 40% - NEUTRAL, <40% - BEARISH"""
        bullish = self.engine.process_trade_batch("A", [make_trade(1, 10, 3, False), make_trade(2, 10, 2, True)])
        neutral = self.engine.process_trade_batch("B", [make_trade(1, 10, 2, False), make_trade(2, 10, 3, True)])
        bearish = self.engine.process_trade_batch("C", [make_trade(1, 10, 1, False), make_trade(2, 10, 3, True)])

        assert bullish.delta_pressure == "BULLISH"
        assert neutral.delta_pressure == "NEUTRAL"
        assert bearish.delta_pressure == "BEARISH"

    def test_reset_symbol(self):
        """Тест: reset обнуляет CVD и профиль, повторный reset безопасен"""
        self.engine.process_trade_batch("BTCUSDT", scenario_trades())

        self.engine.reset_symbol_data("BTCUSDT")
        self.engine.reset_symbol_data("BTCUSDT")
        self.engine.reset_symbol_data("UNKNOWN")

        assert self.engine.get_current_cvd("BTCUSDT") == 0
        assert self.engine.get_volume_profile_summary("BTCUSDT") is None
        assert self.engine.get_cvd_history("BTCUSDT") == []
        assert "BTCUSDT" not in self.engine.symbols()

    def test_unknown_symbol_reads(self):
        """Тест: чтение неизвестного символа"""
        assert self.engine.get_current_cvd("NOPE") == 0
        assert self.engine.get_volume_profile_summary("NOPE") is None

    def test_volume_profile_summary(self):
        """Тест: сводка профиля по накопленным уровням"""
        self.engine.process_trade_batch("BTCUSDT", scenario_trades())

        summary = self.engine.get_volume_profile_summary("BTCUSDT")

        assert summary.poc == 50000
        assert summary.total_volume == pytest.approx(2.5)
        assert summary.buy_dominance == pytest.approx(60.0)

    def test_volume_nodes_accumulate_across_batches(self):
        """Тест: профиль копится без затухания"""
        self.engine.process_trade_batch("BTCUSDT", scenario_trades())
        data = self.engine.process_trade_batch("BTCUSDT", [make_trade(5, 50020.4, 3, True)])

        top = data.volume_profile.volume_nodes[0]
        assert top.price == 50020
        assert top.volume == pytest.approx(3.5)
        assert top.buy_volume == pytest.approx(0.5)
        assert top.sell_volume == pytest.approx(3)
        assert data.volume_profile.poc == 50020

    def test_symbols_are_independent(self):
        """Тест: символы не делят состояние"""
        self.engine.process_trade_batch("BTCUSDT", scenario_trades())
        self.engine.process_trade_batch("ETHUSDT", [make_trade(1, 3000, 4, True)])

        assert self.engine.get_current_cvd("BTCUSDT") == pytest.approx(0.5)
        assert self.engine.get_current_cvd("ETHUSDT") == pytest.approx(-4)
        assert sorted(self.engine.symbols()) == ["BTCUSDT", "ETHUSDT"]

    def test_cvd_trend(self):
        """Тест: тренд CVD по истории"""
        for i in range(3):
            self.engine.process_trade_batch("BTCUSDT", [make_trade(i, 100, 1, False)])

        trend = self.engine.get_cvd_trend("BTCUSDT")

        assert trend["points"] == 3
        assert trend["trend"] == "NEUTRAL"  # 2 положительных изменения - меньше 4
        assert trend["slope"] == pytest.approx(1.0)

    def test_cvd_trend_follows_changes(self):
        """Тест: после долгих продаж покупки дают BULLISH, хотя CVD ещё отрицательный"""
        self.engine.process_trade_batch("BTCUSDT", [make_trade(0, 100, 100, True)])
        for i in range(1, 6):
            self.engine.process_trade_batch("BTCUSDT", [make_trade(i, 100, 1, False)])

        trend = self.engine.get_cvd_trend("BTCUSDT")

        assert self.engine.get_current_cvd("BTCUSDT") == pytest.approx(-95)
        assert trend["trend"] == "BULLISH"

    def test_to_dict(self):
        """Тест: снимок сериализуется в словарь"""
        data = self.engine.process_trade_batch("BTCUSDT", scenario_trades())

        result = data.to_dict()

        assert result["symbol"] == "BTCUSDT"
        assert result["delta"] == pytest.approx(0.5)
        assert result["volume_profile"]["poc"] == 50000
        assert result["volume_profile"]["volume_nodes"][0]["price"] == 50000
        assert result["whale_activity"]["whale_direction"] == "NEUTRAL"


class TestCVDEngineConfig:
    def test_injected_store(self):
        """Тест: engine работает с переданным store"""
        store = CVDStateStore(history_size=3)
        engine = CVDEngine(store=store)

        for i in range(5):
            engine.process_trade_batch("BTCUSDT", [make_trade(i, 100, 1, False)])

        assert list(store.get("BTCUSDT").cvd_history) == [3, 4, 5]

    def test_config_values(self):
        """Тест: настройки из config"""
        class FakeConfig:
            CVD_HISTORY_SIZE = 2
            WHALE_MULTIPLIER = 2
            VOLUME_NODES_TOP_N = 1
            STRICT_TRADE_VALIDATION = False

        engine = CVDEngine(FakeConfig())
        trades = [make_trade(1, 100, 1, False), make_trade(2, 200, 3, True)]
        data = engine.process_trade_batch("BTCUSDT", trades)

        assert data.whale_activity.large_trade_threshold == pytest.approx(4)
        assert len(data.volume_profile.volume_nodes) == 1
        assert engine.store.history_size == 2


class TestStrictMode:
    def test_strict_rejects_bad_batch(self):
        """Тест: строгий режим отклоняет батч и не трогает состояние"""
        engine = CVDEngine(strict=True)

        with pytest.raises(TradeValidationError) as exc:
            engine.process_trade_batch("BTCUSDT", [make_trade(1, -100, 1, False)])

        assert "price" in str(exc.value)
        assert "BTCUSDT" not in engine.symbols()
        assert engine.get_current_cvd("BTCUSDT") == 0

    def test_strict_accepts_good_batch(self):
        """Тест: строгий режим пропускает валидный батч"""
        engine = CVDEngine(strict=True)

        data = engine.process_trade_batch("BTCUSDT", scenario_trades())

        assert data.cvd == pytest.approx(0.5)

    def test_lenient_propagates_bad_values(self):
        """Тест: без строгого режима некорректные значения проходят как есть"""
        engine = CVDEngine()

        data = engine.process_trade_batch("BTCUSDT", [make_trade(1, 100, -2, False)])

        assert data.cvd == pytest.approx(-2)
        assert data.buy_volume == pytest.approx(-2)

    def test_lenient_non_finite_values(self):
        """Тест: NaN/inf цена и NaN объём не роняют engine, а попадают в снимок"""
        engine = CVDEngine()
        trades = [
            make_trade(1, float("nan"), 1.0, False),
            make_trade(2, float("inf"), 1.0, True),
            make_trade(3, 100, float("nan"), False),
        ]

        data = engine.process_trade_batch("BTCUSDT", trades)

        assert math.isnan(data.cvd)
        assert math.isnan(data.buy_volume)
        prices = [node.price for node in data.volume_profile.volume_nodes]
        assert len(prices) == 3
        assert any(isinstance(p, float) and math.isnan(p) for p in prices)
        assert any(isinstance(p, float) and math.isinf(p) for p in prices)
        assert 100 in prices
        assert math.isnan(engine.get_current_cvd("BTCUSDT"))
