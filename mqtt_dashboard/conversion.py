"""Value conversion

Turns raw payloads into display values: user defined substitutions first,
then numeric scaling and rounding.
"""

import math
import decimal
import logging

from mqtt_dashboard import LOGNAME


logger = logging.getLogger(LOGNAME)


UNDEFINED = "UNDEFINED"

# Large enough to quantize any finite float without InvalidOperation.
_DECIMAL_CONTEXT = decimal.Context(prec=420)


def is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value):
    """Parse a raw value as a finite number.

    :param value: Raw value (str, int, float or None).
    :returns float: The parsed number, or None when value is not numeric.
    """
    if is_number(value):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        # float() also accepts digit separators, payloads never do.
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def stringify(value):
    """Get the text form of a value, integral numbers without fraction."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def round_value(number, decimals):
    """Round a number to hundredths, then format it with fixed decimals.

    Both steps round half up, the second one on the exact binary value.
    Numbers overflowing while scaled are written "Infinity" or "-Infinity".

    :param float number: Number to round.
    :param int decimals: Number of decimals to display.
    :returns str: The formatted number.
    """
    scaled = number * 100
    if math.isnan(scaled):
        return "NaN"
    if math.isinf(scaled):
        return "Infinity" if scaled > 0 else "-Infinity"
    number = math.floor(scaled + 0.5) / 100
    quantum = decimal.Decimal(1).scaleb(-decimals)
    rounded = decimal.Decimal(number).quantize(
        quantum, rounding=decimal.ROUND_HALF_UP, context=_DECIMAL_CONTEXT)
    return f"{rounded:f}"


def convert_value(raw_value, conversion=None, factor=None, offset=None,
                  decimals=1):
    """Convert a raw payload into its display value.

    :param raw_value: Raw payload value, None when nothing was received yet.
    :param list conversion: (optional, default None)
        `ConversionRule` list, the first rule matching the trimmed value wins.
    :param float factor: (optional, default None) Numeric values multiplier.
    :param float offset: (optional, default None)
        Added to numeric values, only when a numeric factor is defined.
    :param int decimals: (optional, default 1) Fixed decimals of numbers.
    :returns str: The display value, or None when undefined.
    """
    value = UNDEFINED if raw_value is None else raw_value
    logger.debug(f"Converting value from: {value}")

    if conversion:
        text = stringify(value).strip()
        for rule in conversion:
            if text == stringify(rule.from_value).strip():
                logger.debug(f"to: {rule.to_value}")
                return rule.to_value

    number = to_number(value)
    if number is None:
        value = stringify(value)
    else:
        if factor and is_number(factor):
            logger.debug(f"with a factor of: {factor}")
            number *= factor
        # Offset is only applied along with a numeric factor.
        if offset and is_number(factor):
            logger.debug(f"with an offset of: {offset}")
            number += offset
        logger.debug(f"over: {number}")
        value = round_value(number, decimals)
        logger.debug(
            "to its final value of (with"
            f" {decimals} decimals): {value}")

    return None if value == UNDEFINED else value
