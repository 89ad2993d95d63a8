"""Service tests"""

import json
import time
import threading
import logging
import argparse
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from mqtt_dashboard import LOGNAME
from mqtt_dashboard import __main__ as main_module
from mqtt_dashboard.service import Service
from mqtt_dashboard.presenter import TextPresenter
from mqtt_dashboard.exceptions import ServiceError, ConfigurationError
from mqtt_dashboard.__main__ import (
    _config_file, parse_command_line, load_config, init_logger,
    launch_service, DEFAULT_LOG_FORMAT)


class TestService:

    def test_service_run(self, config, presenter, fake_client_cls):
        svc = Service(config, presenter=presenter, client_cls=fake_client_cls)
        assert not svc.is_running
        assert svc._running_clients == []

        svc.run()
        assert svc.is_running
        assert len(svc._running_clients) == 2
        local_client, remote_client = fake_client_cls.instances
        assert local_client.is_connected
        assert local_client.registration["id"] == "mqtt-dashboard"
        assert local_client.registration["topics"] == [
            "sensors/*/temperature", "garage/door"]
        assert remote_client.url == "mqtts://broker.example.com"
        assert local_client.client_id.startswith("mqtt-dashboard-")
        assert local_client.client_id != remote_client.client_id

        # Subscriptions are displayed, waiting for values.
        assert len(presenter.updates) == 1
        rows, animation_speed = presenter.updates[0]
        assert [x.is_loading for x in rows] == [True, True, True]
        assert animation_speed == 1500

        local_client.publish("garage/door", "1")
        assert len(presenter.updates) == 2
        rows, animation_speed = presenter.updates[1]
        assert rows[0].value == "open"
        assert animation_speed == 1500

        local_client.publish("garage/door", "0")
        rows, animation_speed = presenter.updates[2]
        assert rows[0].value == "closed"
        assert animation_speed == 0

        # Messages of no subscription are not displayed.
        local_client.publish("garage/window", "0")
        remote_client.publish("garage/door", "1")
        assert len(presenter.updates) == 3

        svc.stop()
        assert not svc.is_running
        assert svc._running_clients == []
        assert not local_client.is_connected
        assert not remote_client.is_connected

    def test_service_default_presenter(self, config):
        svc = Service(config)
        assert isinstance(svc.presenter, TextPresenter)
        assert svc.presenter.header == "Home"

    def test_service_nothing_to_do(
            self, empty_config, presenter, fake_client_cls):
        svc = Service(
            empty_config, presenter=presenter, client_cls=fake_client_cls)
        svc.run()
        assert svc.is_running
        assert fake_client_cls.instances == []
        rows, _ = presenter.updates[0]
        assert len(rows) == 1
        assert rows[0].is_placeholder
        svc.stop()

    def test_service_run_connection_error(
            self, config, presenter, fake_client_cls, monkeypatch):

        def connect(self):
            if self.url.startswith("mqtts"):
                raise ServiceError("Connection refused")
            self.is_connected = True

        monkeypatch.setattr(fake_client_cls, "connect", connect)
        svc = Service(config, presenter=presenter, client_cls=fake_client_cls)
        with pytest.raises(ServiceError):
            svc.run()
        assert not svc.is_running
        assert svc._running_clients == []
        # Already connected clients are disconnected.
        local_client, _ = fake_client_cls.instances
        assert not local_client.is_connected
        assert local_client.nb_disconnections == 1



    def test_service_concurrent_messages(
            self, config, fake_client_cls):

        class SlowPresenter:

            def __init__(self):
                self.updates = []
                self.is_showing = False
                self.nb_overlaps = 0

            def show(self, rows, animation_speed=0):
                if self.is_showing:
                    self.nb_overlaps += 1
                self.is_showing = True
                time.sleep(0.001)
                self.updates.append(([x.value for x in rows], animation_speed))
                self.is_showing = False

        presenter = SlowPresenter()
        svc = Service(config, presenter=presenter, client_cls=fake_client_cls)
        svc.run()
        local_client, remote_client = fake_client_cls.instances

        def publish(client, topic):
            for idx in range(20):
                client.publish(topic, str(idx))

        threads = [
            threading.Thread(target=publish, args=args) for args in (
                (local_client, "sensors/kitchen/temperature"),
                (local_client, "garage/door"),
                (remote_client, "power/meter"),
            )
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        svc.stop()

        assert presenter.nb_overlaps == 0
        # Initial display, then one update per message.
        assert len(presenter.updates) == 1 + 3 * 20
        # Only first values of each subscription are animated.
        assert [x[1] for x in presenter.updates].count(1500) == 1 + 3
        # Last display shows last values.
        assert presenter.updates[-1][0] == ["19.0", "19.0", "0.52"]


class TestServiceMain:

    def test_service_main_config_file(self, tmpdir):
        filepath = Path(str(tmpdir)) / "test.txt"

        # File does not exist.
        with pytest.raises(argparse.ArgumentTypeError):
            _config_file(filepath)

        # Existing file.
        filepath.touch()
        assert _config_file(filepath) == filepath.resolve()

        # Directory is not a file.
        with pytest.raises(argparse.ArgumentTypeError):
            _config_file(str(tmpdir))

    def test_service_main_load_config(self, json_service_config, tmpdir):
        filepath = Path(str(tmpdir)) / "service-config.json"

        def write_config_file(service_config):
            with filepath.open("w") as fp:
                json.dump(service_config, fp)

        write_config_file(json_service_config)
        svc_config = load_config(filepath)
        assert svc_config["header"] == "Home"
        assert svc_config["logging"]["level"] == "DEBUG"
        assert len(svc_config["mqtt_brokers"]) == 2

        json_service_config["mqttBrokers"][0]["subscriptions"][0][
            "decimals"] = -1
        write_config_file(json_service_config)
        with pytest.raises(ConfigurationError):
            load_config(filepath)

        filepath.write_text("{not json")
        with pytest.raises(ConfigurationError):
            load_config(filepath)

    def test_service_main_init_logger(self, json_service_config):
        log_config = json_service_config["logging"]

        logger = logging.getLogger(LOGNAME)
        handlers_backup = list(logger.handlers)

        init_logger(log_config)

        assert logger.level == logging.DEBUG
        assert logger.propagate
        new_handlers = [x for x in logger.handlers if x not in handlers_backup]
        assert len(new_handlers) == 1
        assert isinstance(new_handlers[0], TimedRotatingFileHandler)
        assert new_handlers[0].formatter._fmt == log_config["format"]
        assert new_handlers[0].level == logging.NOTSET
        assert new_handlers[0].when.lower() == "midnight"
        assert new_handlers[0].utc
        assert new_handlers[0].backupCount == 30

        init_logger(log_config, verbose=True)
        assert any(
            [type(x) is logging.StreamHandler for x in logger.handlers])

        log_config["enabled"] = False
        init_logger(log_config)
        assert not logger.propagate

        for handler in logger.handlers:
            if handler not in handlers_backup:
                logger.removeHandler(handler)
                handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)

    def test_service_main_launch_service(
            self, config, presenter, fake_client_cls, monkeypatch):
        services = []

        def create_service(svc_config):
            svc = Service(
                svc_config, presenter=presenter, client_cls=fake_client_cls)
            services.append(svc)
            return svc

        def interrupt(delay):
            raise KeyboardInterrupt

        monkeypatch.setattr(main_module, "Service", create_service)
        assert launch_service(config, wait=interrupt)
        svc, = services
        assert not svc.is_running
        assert all(not x.is_connected for x in fake_client_cls.instances)

    def test_service_main_launch_service_error(
            self, config, presenter, fake_client_cls, monkeypatch):

        def connect(self):
            raise ServiceError("Connection refused")

        def create_service(svc_config):
            return Service(
                svc_config, presenter=presenter, client_cls=fake_client_cls)

        monkeypatch.setattr(fake_client_cls, "connect", connect)
        monkeypatch.setattr(main_module, "Service", create_service)
        assert not launch_service(config, wait=None)

    def test_service_main(self, json_service_config, tmpdir, monkeypatch):
        filepath = Path(str(tmpdir)) / "service-config.json"
        json_service_config["mqttBrokers"][0]["port"] = "bad"
        with filepath.open("w") as fp:
            json.dump(json_service_config, fp)

        monkeypatch.setattr(
            main_module.sys, "argv", ["mqtt-dashboard", str(filepath)])
        assert main_module.main() == 2

    def test_service_main_check(
            self, json_service_config, tmpdir, monkeypatch, capsys):
        filepath = Path(str(tmpdir)) / "service-config.json"
        with filepath.open("w") as fp:
            json.dump(json_service_config, fp)

        def create_service(svc_config):
            raise AssertionError("Service should not be created")

        monkeypatch.setattr(main_module, "Service", create_service)
        monkeypatch.setattr(
            main_module.sys, "argv",
            ["mqtt-dashboard", "--check", str(filepath)])
        assert main_module.main() == 0
        assert "2 broker(s), 3 subscription(s)" in capsys.readouterr().out

    def test_service_main_parse_command_line(self, tmpdir):
        filepath = Path(str(tmpdir)) / "service-config.json"
        filepath.touch()

        cmd_args = parse_command_line(["mqtt-dashboard", str(filepath)])
        assert cmd_args.config_filepath == filepath.resolve()
        assert not cmd_args.check
        assert not cmd_args.verbose

        cmd_args = parse_command_line(
            ["mqtt-dashboard", "-v", "--check", str(filepath)])
        assert cmd_args.check
        assert cmd_args.verbose

        with pytest.raises(SystemExit):
            parse_command_line(["mqtt-dashboard", str(filepath) + ".bak"])

    def test_service_main_init_logger_default_format(self):
        logger = logging.getLogger(LOGNAME)
        handlers_backup = list(logger.handlers)

        init_logger({"level": "INFO"}, verbose=True)
        new_handlers = [x for x in logger.handlers if x not in handlers_backup]
        assert len(new_handlers) == 1
        assert new_handlers[0].formatter._fmt == DEFAULT_LOG_FORMAT
        assert logger.level == logging.INFO

        for handler in new_handlers:
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
