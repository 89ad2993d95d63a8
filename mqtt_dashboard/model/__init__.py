"""Model

A broker publishes messages on topics, each subscription displays the values
of a topic (or of wildcard topics) from a broker.
"""

from .broker import BrokerConfig, Auth  # noqa
from .subscription import (  # noqa
    Subscription, ColorRule, ConversionRule, RollingAverage)
