import math


def round_half_up(value, digits=1):
    """Round like ``Math.round(x * 10**d) / 10**d``; Python's round() is banker's."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return 0
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
