"""Dashboard service"""

import uuid
import threading
import logging

from mqtt_dashboard import LOGNAME
from mqtt_dashboard.store import SubscriptionStore
from mqtt_dashboard.client import BrokerClient
from mqtt_dashboard.presenter import TextPresenter
from mqtt_dashboard.exceptions import ServiceError


logger = logging.getLogger(LOGNAME)


MQTT_CLIENT_ID = "mqtt-dashboard"


class Service:
    """Dashboard service: displays values received from configured brokers.

    :param dict config: Configuration loaded by `ConfigSchema`.
    :param PresenterBase presenter: (optional, default None)
        Presenter of rows, a `TextPresenter` on stdout by default.
    :param type client_cls: (optional, default BrokerClient)
        Broker client class, instantiated for each broker.
    :param str identifier: (optional, default "mqtt-dashboard")
        ID of this dashboard, sent with broker registration requests.
    """

    def __init__(
            self, config, *, presenter=None, client_cls=BrokerClient,
            identifier=MQTT_CLIENT_ID):
        self.store = SubscriptionStore.from_config(config)
        if presenter is None:
            presenter = TextPresenter(config.get("header"))
        self.presenter = presenter
        self.identifier = identifier
        self._client_cls = client_cls
        self._running_clients = []
        self._display_lock = threading.Lock()
        self.is_running = False

    def on_message(self, message):
        """Process a message received from a broker client.

        Broker clients call this from their own network threads: ingestion
        and display of a message are done before the next one is processed.
        """
        with self._display_lock:
            if self.store.ingest(message) is not None:
                self._show()

    def _show(self):
        self.presenter.show(self.store.render(), self.store.animation_speed)

    def update_display(self):
        with self._display_lock:
            self._show()

    def run(self):
        """Run the dashboard service:
            - display subscriptions (no value yet)
            - connect a client to each broker to get messages

        :raises ServiceError: When a broker client can not connect.
        """
        logger.debug("Starting service...")
        if len(self.store) == 0:
            logger.warning("No subscriptions configured!")
        self.update_display()

        for request in self.store.registration_requests(self.identifier):
            client = self._client_cls(
                request, self.on_message,
                client_id=f"{self.identifier}-{uuid.uuid4().hex[:8]}")
            try:
                client.connect()
            except ServiceError:
                self.stop()
                raise
            self._running_clients.append(client)

        self.is_running = True
        logger.debug("Service is running!")

    def stop(self):
        """Stop the dashboard service, disconnecting each broker client."""
        logger.debug("Stopping service...")
        while len(self._running_clients) > 0:
            self._running_clients.pop(0).disconnect()
        self.is_running = False
        logger.debug("Service is stopped!")
