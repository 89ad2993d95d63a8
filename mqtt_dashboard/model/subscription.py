"""Dashboard subscription"""

import logging
import collections
import datetime as dt

from mqtt_dashboard import LOGNAME
from mqtt_dashboard.settings import Config
from mqtt_dashboard.conversion import convert_value, to_number
from mqtt_dashboard.model import topic as topic_matcher


logger = logging.getLogger(LOGNAME)


ConversionRule = collections.namedtuple(
    "ConversionRule", ["from_value", "to_value"])


class ColorRule(collections.namedtuple(
        "ColorRule", ["up_to", "label", "value", "suffix"])):
    """Colors used while a value stays below `up_to`.

    :param float up_to: Exclusive upper bound, None for an open bucket.
    :param str label: (optional) Label color.
    :param str value: (optional) Value color.
    :param str suffix: (optional) Suffix color.
    """
    __slots__ = ()

    def __new__(cls, up_to=None, label=None, value=None, suffix=None):
        return super().__new__(cls, up_to, label, value, suffix)

    def as_dict(self):
        return {
            name: getattr(self, name) for name in ("label", "value", "suffix")
            if getattr(self, name) is not None
        }


class RollingAverage:
    """Mean of the last numeric samples.

    :param int size: (optional, default 5) Number of samples kept.
    """

    def __init__(self, size=Config.PAST_VALUES_MAX):
        self._samples = collections.deque(maxlen=size)
        self.average = None

    @property
    def samples(self):
        return list(self._samples)

    def __len__(self):
        return len(self._samples)

    def add(self, sample):
        """Add a sample, the oldest one being evicted when window is full.

        Non-numeric samples are ignored.

        :param sample: Raw sample value.
        :returns bool: Whether sample has been added.
        """
        number = to_number(sample)
        if number is None:
            return False
        self._samples.append(number)
        self.average = sum(self._samples) / len(self._samples)
        return True


class Subscription:
    """A topic displayed on the dashboard, with its display rules.

    :param str broker: URL of the broker publishing the topic.
    :param str topic: Topic name, `*` characters match anything.
    :param str label: (optional, default "") Text displayed before value.
    :param str suffix: (optional, default "") Text displayed after value.
    :param str icon: (optional, default "") Font Awesome icon name.
    :param bool show_label_as_icon: (optional, default False)
        Display the icon instead of the label (if an icon is defined).
    :param int position: (optional, default 1) Display order.
    :param list colors: (optional, default None) `ColorRule` list.
    :param list conversion: (optional, default None) `ConversionRule` list.
    :param float factor: (optional, default None) Numeric values multiplier.
    :param float offset: (optional, default None) Numeric values offset.
    :param int decimals: (optional, default 1) Decimals of numeric values.
    :param int animation_speed: (optional, default 2000)
        Transition delay (ms) used when the first value is displayed.
    """

    def __init__(
            self, broker, topic, *, label="", suffix="", icon="",
            show_label_as_icon=False, position=Config.POSITION, colors=None,
            conversion=None, factor=None, offset=None,
            decimals=Config.DECIMALS, animation_speed=Config.ANIMATION_SPEED):
        self.broker = broker
        self.topic = topic
        self.label = label
        self.suffix = suffix
        self.icon = icon
        self.show_label_as_icon = show_label_as_icon
        self.position = position
        self.colors = list(colors or [])
        self.conversion = list(conversion or [])
        # Zero factor or offset means none.
        self.factor = factor or None
        self.offset = offset or None
        self.decimals = decimals
        self.animation_speed = animation_speed
        self.timestamp_last_reception = None
        self._rolling_average = RollingAverage()
        self.value = self.convert(None)

    def __repr__(self):
        return (
            f"<Subscription {self.broker} {self.topic!r}"
            f" label={self.label!r} value={self.value!r}>")

    @property
    def past_values(self):
        return self._rolling_average.samples

    @property
    def average(self):
        return self._rolling_average.average

    @property
    def is_seen(self):
        return self.value is not None

    def convert(self, raw_value):
        """Convert a raw value with the subscription rules."""
        return convert_value(
            raw_value, self.conversion, self.factor, self.offset,
            self.decimals)

    def accepts(self, url, topic):
        """Check whether a message from a broker and topic is for us.

        :param str url: URL of the broker the message comes from.
        :param str topic: Topic of the message.
        """
        return url == self.broker and topic_matcher.matches(self.topic, topic)

    def update(self, payload):
        """Update value and average from a received payload.

        Only the first displayed value is animated, next updates are
        displayed immediately.

        :param payload: Raw payload received.
        :returns int: The animation speed to display this update with.
        """
        # Converted first, the record stays untouched if conversion fails.
        value = self.convert(payload)
        if self.is_seen:
            animation_speed = 0
        else:
            animation_speed = self.animation_speed
            self.animation_speed = 0

        self.value = value
        self.timestamp_last_reception = dt.datetime.now(dt.timezone.utc)
        if not self._rolling_average.add(payload):
            logger.debug(
                f"[Subscription {self.topic}] non-numeric payload"
                f" {payload!r} left out of average")
        return animation_speed
