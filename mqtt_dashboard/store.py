"""Subscription store

Holds the subscriptions in configuration order, dispatches received messages
to them and builds the rows to display.
"""

import logging
import threading
import collections

from mqtt_dashboard import LOGNAME
from mqtt_dashboard.settings import Config
from mqtt_dashboard.colors import resolve_colors
from mqtt_dashboard.model import BrokerConfig, Subscription


logger = logging.getLogger(LOGNAME)


class Row(collections.namedtuple(
        "Row", ["label", "icon", "value", "suffix", "colors",
                "is_loading", "is_placeholder"],
        defaults=("", None, "", None, {}, False, False))):
    """A displayed line.

    :param str label: Label text ("" when an icon is displayed instead).
    :param str icon: Icon name, None when the label is displayed.
    :param str value: Display value, or loading/placeholder text.
    :param str suffix: Suffix text, None when there is no value to suffix.
    :param dict colors: Colors of "label", "value" and "suffix" if defined.
    :param bool is_loading: No value received yet.
    :param bool is_placeholder: Row standing for an empty dashboard.
    """
    __slots__ = ()


class SubscriptionStore:
    """Ordered subscriptions of the dashboard.

    Messages are processed one at a time, reception threads of several
    brokers being serialized by a lock.

    :param list brokers: `BrokerConfig` list.
    :param list subscriptions: `Subscription` list, in configuration order.
    :param int animation_speed: (optional, default 2000)
        Transition delay (ms) of the next display update.
    :param dict translations: (optional, default None)
        Overrides "EMPTY" and "LOADING" texts.
    """

    def __init__(
            self, brokers=None, subscriptions=None, *,
            animation_speed=Config.ANIMATION_SPEED, translations=None):
        self.brokers = list(brokers or [])
        self._subscriptions = list(subscriptions or [])
        self.animation_speed = animation_speed
        self.translations = {**Config.TRANSLATIONS, **(translations or {})}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._subscriptions)

    @property
    def subscriptions(self):
        return list(self._subscriptions)

    @classmethod
    def from_config(cls, config, *, translations=None):
        """Create the store from a loaded configuration.

        :param dict config: Configuration loaded by `ConfigSchema`.
        :param dict translations: (optional, default None)
            Overrides "EMPTY" and "LOADING" texts.
        :returns SubscriptionStore: The store, no value received yet.
        """
        animation_speed = config.get(
            "animation_speed", Config.ANIMATION_SPEED)
        default_port = config.get("port", Config.PORT)
        brokers = []
        subscriptions = []
        for broker_config in config.get("mqtt_brokers", []):
            subscription_configs = broker_config.get("subscriptions", [])
            broker = BrokerConfig.create(
                broker_config["url"],
                [x["topic"] for x in subscription_configs],
                port=broker_config.get("port") or default_port,
                auth=broker_config.get("auth"))
            brokers.append(broker)
            for subscription_config in subscription_configs:
                subscriptions.append(Subscription(
                    broker.url, animation_speed=animation_speed,
                    **subscription_config))
            logger.debug(
                f"[Broker @{broker.url}] {len(subscription_configs)}"
                " subscription(s) configured")
        return cls(
            brokers, subscriptions, animation_speed=animation_speed,
            translations=translations)

    def registration_requests(self, identifier):
        """Get the registration requests of all brokers.

        :param str identifier: ID of the dashboard instance requesting.
        :returns list: Registration requests, one per broker.
        """
        return [x.registration_request(identifier) for x in self.brokers]

    def ingest(self, message):
        """Update the first subscription accepting a received message.

        Subscriptions are tried in configuration order. Messages accepted by
        no subscription are dropped.

        :param dict message: Received message, with "url", "topic" and
            "payload" keys.
        :returns Subscription: The updated subscription, or None.
        """
        with self._lock:
            for subscription in self._subscriptions:
                if subscription.accepts(message["url"], message["topic"]):
                    self.animation_speed = subscription.update(
                        message["payload"])
                    return subscription
        return None

    def _sorted(self):
        # sorted() is stable, equal positions keep configuration order.
        return sorted(self._subscriptions, key=lambda x: x.position)

    def sorted_subscriptions(self):
        """Get subscriptions sorted by position."""
        with self._lock:
            return self._sorted()

    def _make_row(self, subscription):
        has_value = (
            subscription.value is not None
            and str(subscription.value).strip() != "")
        if subscription.show_label_as_icon and subscription.icon != "":
            label, icon = "", subscription.icon
        else:
            label, icon = subscription.label, None
        return Row(
            label=label,
            icon=icon,
            value=(
                subscription.value if has_value
                else self.translations["LOADING"]),
            suffix=subscription.suffix if has_value else None,
            colors=resolve_colors(subscription.value, subscription.colors),
            is_loading=not has_value,
        )

    def render(self):
        """Build the rows to display, sorted by position.

        :returns list: `Row` list, a single placeholder row when no
            subscription is configured.
        """
        with self._lock:
            if not self._subscriptions:
                return [Row(
                    value=self.translations["EMPTY"], is_placeholder=True)]
            return [self._make_row(x) for x in self._sorted()]
