"""MQTT broker client"""

import logging
import urllib.parse
import paho.mqtt.client as mqttc

from mqtt_dashboard import LOGNAME
from mqtt_dashboard.model.topic import to_subscription_filter
from mqtt_dashboard.exceptions import ServiceError


logger = logging.getLogger(LOGNAME)


class BrokerClient:
    """Connects to a broker and forwards received messages.

    Topics are (re)subscribed at each connection. Messages are forwarded as
    `{"url", "topic", "payload"}` dicts, payload decoded as UTF-8 text.

    :param dict registration: Broker registration request, with "id", "url",
        "port", "auth" and "topics" keys.
    :param callable on_message: Called with each received message.
    :param str client_id: (optional, default "") MQTT client ID.
    :param int keep_alive: (optional, default 60)
        Time interval, in seconds, to auto-check client connection status.
    """

    def __init__(self, registration, on_message, *, client_id="",
                 keep_alive=60):
        self.url = registration["url"]
        self.port = registration["port"]
        self.auth = registration.get("auth")
        self.topics = list(registration["topics"])
        self.keep_alive = keep_alive
        self._client_id = client_id
        self._on_message_callback = on_message
        self._client = None
        self.is_connected = False

        parsed_url = urllib.parse.urlsplit(self.url)
        self.host = parsed_url.hostname
        self.use_tls = parsed_url.scheme == "mqtts"

    @property
    def _log_header(self):
        return f"[Broker @{self.url}]"

    @property
    def topic_filters(self):
        """Unique topic filters to subscribe to on the broker."""
        return list(dict.fromkeys(
            to_subscription_filter(x) for x in self.topics))

    def _client_create(self):
        logger.debug(f"{self._log_header} creating MQTT client...")
        client = mqttc.Client(
            mqttc.CallbackAPIVersion.VERSION2, client_id=self._client_id)
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        return client

    def _client_apply_security(self):
        if self.auth is not None:
            logger.debug(f"{self._log_header} use MQTT client authentication")
            self._client.username_pw_set(
                self.auth["user"], password=self.auth.get("password"))
        if self.use_tls:
            logger.debug(f"{self._log_header} use MQTT client TLS")
            self._client.tls_set()

    def connect(self):
        """Connect to the broker and start the network loop.

        :raises ServiceError: When the broker can not be reached.
        """
        if self.host is None:
            raise ServiceError(f"{self._log_header} invalid broker URL!")
        self._client = self._client_create()
        self._client.enable_logger(logger)
        self._client_apply_security()
        try:
            self._client.connect(
                host=self.host, port=self.port, keepalive=self.keep_alive)
        except (OSError, ValueError) as exc:
            raise ServiceError(
                f"{self._log_header} connection error: {exc}") from exc
        # Messages are received in this background network loop.
        self._client.loop_start()

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            logger.error(
                f"{self._log_header} connection error reason: {reason_code}")
            return
        self.is_connected = True
        logger.info(f"{self._log_header} connected")
        self.subscribe_all()

    def subscribe_all(self):
        """Subscribe to all topic filters."""
        for topic_filter in self.topic_filters:
            self._client.subscribe(topic_filter)
            logger.debug(f"{self._log_header} subscribed to {topic_filter}")

    def disconnect(self):
        """Disconnect from the broker and stop the network loop."""
        if self._client is None:
            return
        self._client.disconnect()
        self._client.loop_stop()
        self._client.disable_logger()
        self.is_connected = False

    def _on_disconnect(
            self, client, userdata, flags, reason_code, properties):
        self.is_connected = False
        if reason_code.is_failure:
            logger.error(
                f"{self._log_header} disconnection error reason:"
                f" {reason_code}")

    def _on_message(self, client, userdata, msg):
        payload = msg.payload.decode("utf-8", errors="replace")
        self._on_message_callback({
            "url": self.url,
            "topic": msg.topic,
            "payload": payload,
        })
