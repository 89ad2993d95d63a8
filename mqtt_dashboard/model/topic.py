"""MQTT topic matching

Subscription topics may contain `*` characters, each one matching any
sequence of characters, topic level separators included. This is looser than
MQTT `+` and `#` wildcards: `sensors/*/temp` also matches `sensors/1/2/temp`.
"""

import re


WILDCARD = "*"


def is_wildcard(topic):
    return WILDCARD in topic


def topic_regex(topic):
    """Compile the regular expression matching a subscription topic.

    :param str topic: Subscription topic, optionally with `*` wildcards.
    :returns re.Pattern: Pattern to match against whole topics.
    """
    pattern = ".*".join(re.escape(part) for part in topic.split(WILDCARD))
    return re.compile(pattern, re.DOTALL)


def matches(subscription_topic, incoming_topic):
    """Check whether an incoming topic matches a subscription topic.

    :param str subscription_topic: Configured topic (may contain wildcards).
    :param str incoming_topic: Topic of a received message.
    :returns bool: True when the incoming topic matches.
    """
    if not is_wildcard(subscription_topic):
        return subscription_topic == incoming_topic
    regex = topic_regex(subscription_topic)
    return regex.fullmatch(incoming_topic) is not None


def to_subscription_filter(topic):
    """Get the MQTT topic filter to subscribe to on the broker.

    Wildcard topics are widened to a multi-level filter on their fixed prefix
    (`sensors/*/temp` gives `sensors/#`), received messages being narrowed by
    `matches` afterwards.

    :param str topic: Subscription topic.
    :returns str: MQTT topic filter.
    """
    if not is_wildcard(topic):
        return topic
    levels = []
    for level in topic.split("/"):
        if WILDCARD in level:
            break
        levels.append(level)
    levels.append("#")
    return "/".join(levels)
