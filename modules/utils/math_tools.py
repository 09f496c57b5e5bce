# modules/utils/math_tools.py


def calculate_percentage_change(old_value, new_value):
    """Расчет процентного изменения"""
    if old_value == 0:
        return 0
    return ((new_value - old_value) / old_value) * 100
