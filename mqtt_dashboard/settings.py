"""Default configuration"""


class Config:
    """Default configuration"""

    # Display parameters
    HEADER = "MMM-MQTT"
    ANIMATION_SPEED = 2 * 1000  # milliseconds

    # Broker parameters
    PORT = 1883

    # Subscription parameters
    POSITION = 1
    DECIMALS = 1
    PAST_VALUES_MAX = 5

    # Texts
    TRANSLATIONS = {
        "EMPTY": "No subscriptions configured",
        "LOADING": "Loading...",
    }
