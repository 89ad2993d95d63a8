"""MQTT broker"""

import re
import collections

from mqtt_dashboard.settings import Config


_SCHEME_REGEX = re.compile(r"^mqtts?://")

Auth = collections.namedtuple("Auth", ["user", "password"])


def normalize_url(url):
    """Prefix a broker URL with `mqtt://` when it has no MQTT scheme."""
    return url if _SCHEME_REGEX.match(url) else f"mqtt://{url}"


class BrokerConfig(collections.namedtuple(
        "BrokerConfig", ["url", "port", "auth", "topics"])):
    """Describes a broker connection, as requested to the MQTT client.

    :param str url: Broker URL (`mqtt://` or `mqtts://` scheme).
    :param int port: Broker port.
    :param Auth auth: Credentials, None when no authentication is required.
    :param tuple topics: Unique topics to subscribe to, in configuration
        order.
    """
    __slots__ = ()

    @classmethod
    def create(cls, url, topics, *, port=None, auth=None):
        """Create a broker configuration from user values.

        :param str url: Broker URL, `mqtt://` is added when no scheme given.
        :param list topics: Subscription topics, duplicates are dropped.
        :param int port: (optional, default 1883) Broker port.
        :param dict auth: (optional, default None)
            Credentials, with "user" and "password" keys.
        """
        if auth is not None and not isinstance(auth, Auth):
            auth = Auth(auth["user"], auth.get("password"))
        return cls(
            url=normalize_url(url),
            port=port or Config.PORT,
            auth=auth,
            topics=tuple(dict.fromkeys(topics)),
        )

    def registration_request(self, identifier):
        """Get the request registering this broker to a connection handler.

        :param str identifier: ID of the dashboard instance requesting.
        :returns dict: Registration request.
        """
        return {
            "id": identifier,
            "url": self.url,
            "port": self.port,
            "auth": self.auth._asdict() if self.auth is not None else None,
            "topics": list(self.topics),
        }
