"""Threshold based colors"""

from mqtt_dashboard.conversion import to_number


def resolve_colors(value, colors):
    """Get the colors of a subscription row from its threshold table.

    Rules are scanned in order and the first one whose `up_to` is greater
    than the value is used. When the value reaches no `up_to`, the last rule
    is used. A None value counts as 0, a non-numeric one is never lower than
    any `up_to`.

    :param value: Display value (str, number or None).
    :param list colors: `ColorRule` list, may be empty or None.
    :returns dict: Defined colors among "label", "value" and "suffix" keys.
    """
    if not colors:
        return {}

    number = 0.0 if value is None else to_number(value)
    for rule in colors:
        selected = rule
        if (number is not None and rule.up_to is not None
                and number < rule.up_to):
            break

    return selected.as_dict()
