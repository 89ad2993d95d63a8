"""Dashboard tests conftest"""

import pytest

from mqtt_dashboard.schemas import ConfigSchema


class FakeBrokerClient:
    """Broker client recording calls, without network"""

    instances = []

    def __init__(self, registration, on_message, *, client_id=""):
        self.registration = registration
        self.on_message = on_message
        self.client_id = client_id
        self.url = registration["url"]
        self.is_connected = False
        self.nb_disconnections = 0
        FakeBrokerClient.instances.append(self)

    def connect(self):
        self.is_connected = True

    def disconnect(self):
        self.is_connected = False
        self.nb_disconnections += 1

    def publish(self, topic, payload):
        self.on_message({"url": self.url, "topic": topic, "payload": payload})


class RecordingPresenter:
    """Presenter keeping each display update"""

    def __init__(self):
        self.updates = []

    def show(self, rows, animation_speed=0):
        self.updates.append((rows, animation_speed))


@pytest.fixture
def fake_client_cls():
    FakeBrokerClient.instances = []
    yield FakeBrokerClient
    FakeBrokerClient.instances = []


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def raw_config():
    return {
        "header": "Home",
        "animationSpeed": 1500,
        "mqttBrokers": [
            {
                "url": "localhost",
                "subscriptions": [
                    {
                        "topic": "sensors/*/temperature",
                        "label": "Temperature",
                        "suffix": "°C",
                        "position": 2,
                        "colors": [
                            {"upTo": 10, "value": "blue"},
                            {"upTo": 25, "value": "white"},
                            {"value": "red"},
                        ],
                    },
                    {
                        "topic": "garage/door",
                        "label": "Door",
                        "icon": "door-open",
                        "showLabelAsIcon": True,
                        "position": 1,
                        "conversion": [
                            {"from": 1, "to": "open"},
                            {"from": 0, "to": "closed"},
                        ],
                    },
                ],
            },
            {
                "url": "mqtts://broker.example.com",
                "port": 8883,
                "auth": {"user": "dashboard", "password": "secret"},
                "subscriptions": [
                    {
                        "topic": "power/meter",
                        "label": "Power",
                        "suffix": "kW",
                        "factor": 0.001,
                        "offset": 0.5,
                        "decimals": 2,
                        "position": 2,
                    },
                ],
            },
        ],
    }


@pytest.fixture
def config(raw_config):
    return ConfigSchema().load(raw_config)


@pytest.fixture
def empty_config():
    return ConfigSchema().load({})


@pytest.fixture
def json_service_config(raw_config, tmpdir):
    raw_config["logging"] = {
        "enabled": True,
        "format": "%(asctime)s %(levelname)s %(module)s: %(message)s",
        "level": "DEBUG",
        "dirpath": str(tmpdir),
        "history": 30,
    }
    return raw_config
