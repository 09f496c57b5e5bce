# modules/cvd/cvd_state.py

"""
Хранилище состояния CVD по символам
Владелец - вызывающий код, engine получает store через конструктор
"""

from collections import deque

DEFAULT_HISTORY_SIZE = 1440  # 24 часа при опросе раз в минуту


class SymbolState:
    """
    Состояние одного символа

    cvd_history  - ограниченная FIFO история накопленного CVD (по значению на вызов)
    volume_nodes - {ценовой уровень: {"buy": float, "sell": float}}, копится без затухания
    """

    def __init__(self, history_size=DEFAULT_HISTORY_SIZE):
        self.cvd_history = deque(maxlen=history_size)
        self.volume_nodes = {}

    @property
    def current_cvd(self) -> float:
        return self.cvd_history[-1] if self.cvd_history else 0.0

    @property
    def previous_cvd(self):
        """Предпоследнее значение истории или None"""
        return self.cvd_history[-2] if len(self.cvd_history) >= 2 else None

    def append_cvd(self, cvd: float):
        self.cvd_history.append(cvd)

    def add_volume(self, price_level: int, quantity: float, is_buy: bool):
        node = self.volume_nodes.setdefault(price_level, {"buy": 0.0, "sell": 0.0})
        if is_buy:
            node["buy"] += quantity
        else:
            node["sell"] += quantity

    def change_over(self, slots: int) -> float:
        """
        Изменение CVD за последние `slots` слотов истории

        Возвращает 0, пока в истории не больше `slots` значений
        """
        history = self.cvd_history
        if len(history) > slots:
            return history[-1] - history[-(slots + 1)]
        return 0.0


class CVDStateStore:
    """
    Явное хранилище SymbolState по символам (создаётся лениво)

    Не потокобезопасно: обновления одного символа должны идти из одного потока/задачи.
    """

    def __init__(self, history_size=DEFAULT_HISTORY_SIZE):
        self.history_size = history_size
        self._states = {}

    def get(self, symbol: str):
        """Возвращает состояние символа или None, ничего не создавая"""
        return self._states.get(symbol)

    def get_or_create(self, symbol: str) -> SymbolState:
        state = self._states.get(symbol)
        if state is None:
            state = SymbolState(history_size=self.history_size)
            self._states[symbol] = state
        return state

    def reset(self, symbol: str):
        self._states.pop(symbol, None)

    def symbols(self):
        return list(self._states.keys())
