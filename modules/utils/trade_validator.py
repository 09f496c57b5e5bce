# modules/utils/trade_validator.py

import math
import logging

logger = logging.getLogger(__name__)


class TradeValidationError(ValueError):
    """Батч сделок не прошёл строгую валидацию"""

    def __init__(self, issues):
        self.issues = list(issues)
        super().__init__("; ".join(self.issues))


def _is_positive_number(value):
    try:
        value = float(value)
    except (TypeError, ValueError):
        return False
    return not math.isnan(value) and not math.isinf(value) and value > 0


class TradeValidator:
    """
    Валидатор батча сделок для строгого режима CVD engine
    """

    def __init__(self, config=None):
        self.config = config
        # Сколько проблемных сделок перечислять в issues
        self.max_reported = getattr(config, 'MAX_REPORTED_TRADE_ISSUES', 10) if config else 10

    def validate_trades(self, trades):
        """
        Валидация сделок

        Проверяет: цена и объём - конечные положительные числа,
        id идут по возрастанию.

        Returns:
            dict: {"valid": bool, "issues": [], "trade_count": int}
        """
        issues = []
        bad_count = 0
        prev_id = None

        for idx, t in enumerate(trades or []):
            problems = []
            if not _is_positive_number(t.price):
                problems.append(f"price={t.price}")
            if not _is_positive_number(t.quantity):
                problems.append(f"quantity={t.quantity}")
            if prev_id is not None and t.id <= prev_id:
                problems.append(f"id {t.id} after {prev_id}")
            prev_id = t.id

            if problems:
                bad_count += 1
                if bad_count <= self.max_reported:
                    issues.append(f"Trade #{idx} (id={t.id}): " + ", ".join(problems))

        if bad_count > self.max_reported:
            issues.append(f"... and {bad_count - self.max_reported} more invalid trades")

        valid = bad_count == 0
        if not valid:
            logger.warning(f"Trades validation failed: {bad_count} invalid trades")

        return {
            "valid": valid,
            "issues": issues,
            "trade_count": len(trades or [])
        }

    def ensure_valid(self, trades):
        """Бросает TradeValidationError, если батч невалиден"""
        result = self.validate_trades(trades)
        if not result["valid"]:
            raise TradeValidationError(result["issues"])
        return result
