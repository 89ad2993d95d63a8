#!/usr/bin/env python3
"""Launch MQTT dashboard service."""

import os
import sys
import argparse
import json
import time
import re
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import marshmallow as ma

import mqtt_dashboard as svc
from mqtt_dashboard.service import Service
from mqtt_dashboard.schemas import ConfigSchema
from mqtt_dashboard.exceptions import ServiceError, ConfigurationError


logger = logging.getLogger(svc.LOGNAME)


# Log records are timestamped in UTC.
DEFAULT_LOG_FORMAT = (
    "%(asctime)s %(levelname)-8s [%(threadName)s] %(module)s: %(message)s")
DEFAULT_LOG_HISTORY = 30


def main():
    """Main program."""
    cmd_args = parse_command_line(sys.argv)
    try:
        svc_config = load_config(cmd_args.config_filepath)
    except ConfigurationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    if cmd_args.check:
        nb_subscriptions = sum(
            len(x["subscriptions"]) for x in svc_config["mqtt_brokers"])
        print(
            f"{cmd_args.config_filepath}: {len(svc_config['mqtt_brokers'])}"
            f" broker(s), {nb_subscriptions} subscription(s)")
        return 0
    init_logger(svc_config["logging"], verbose=cmd_args.verbose)
    return 0 if launch_service(svc_config) else 1


def _config_file(str_value):
    """Get dashboard configuration file path from its argument value.

    :param str str_value: Path given on command line.
    :returns Path: Absolute path of a readable configuration file.
    :raises argparse.ArgumentTypeError: When no readable file is found.
    """
    config_filepath = Path(str_value).resolve()
    if not config_filepath.is_file():
        raise argparse.ArgumentTypeError(
            f"no configuration file at {config_filepath}")
    if not os.access(config_filepath, os.R_OK):
        raise argparse.ArgumentTypeError(
            f"configuration file {config_filepath} can not be read")
    return config_filepath


def parse_command_line(argv):
    """Parse dashboard command line. See -h option

    :param list argv: Command line, starting with the program name.
    :returns argparse.Namespace: Argument values.
    """
    parser = argparse.ArgumentParser(
        prog=svc.__binname__, description=svc.__description__,
        epilog=f"example: {svc.__binname__} -v dashboard.json")
    parser.add_argument(
        "--version", action="version", version=(
            f"{svc.__binname__} {svc.__version__} ({svc.__author__})"),
    )
    parser.add_argument(
        dest="config_filepath", metavar="CONFIG", type=_config_file,
        help="dashboard configuration file (JSON)",
    )
    parser.add_argument(
        "--check", dest="check", action="store_true", default=False,
        help="validate configuration file and exit",
    )
    parser.add_argument(
        "-v", "--verbose", dest="verbose", action="store_true", default=False,
        help="also print log messages on console",
    )
    return parser.parse_args(argv[1:])


def load_config(config_filepath):
    """Load and validate dashboard configuration from JSON file.

    Missing optional parameters are set to their default value.

    :param Path config_filepath: Dashboard config file path.
    :returns dict: Dashboard parameters.
    :raises ConfigurationError: When file content is not a valid
        configuration.
    """
    try:
        with config_filepath.open("r") as config_file:
            raw_config = json.load(config_file)
    except json.decoder.JSONDecodeError as exc:
        raise ConfigurationError(f"not a JSON file: {exc}") from exc
    try:
        return ConfigSchema().load(raw_config)
    except ma.ValidationError as exc:
        raise ConfigurationError(str(exc.messages)) from exc


def _log_handlers(log_config, verbose):
    handlers = []
    if verbose:
        handlers.append(logging.StreamHandler())
    if "dirpath" in log_config:
        # One file per day, suffixed with its date.
        handler = TimedRotatingFileHandler(
            Path(log_config["dirpath"]) / f"{svc.__binname__}.log",
            when="midnight", utc=True,
            backupCount=log_config.get("history", DEFAULT_LOG_HISTORY))
        handler.suffix = "%Y-%m-%d"
        handler.extMatch = re.compile(r"^\d{4}-\d{2}-\d{2}$")
        handlers.append(handler)
    return handlers


def init_logger(log_config, *, verbose=False):
    """Set up dashboard logger from "logging" configuration section.

    Records go to console when verbose and to daily log files when a
    "dirpath" is configured. "enabled" set to False stops propagation to
    root logger.

    :param dict log_config: Logging configuration.
    :param bool verbose: (optional, default False)
        Print log messages on console.
    """
    formatter = logging.Formatter(
        log_config.get("format", DEFAULT_LOG_FORMAT))
    formatter.converter = time.gmtime
    logger.setLevel(log_config.get("level", logging.WARNING))
    for handler in _log_handlers(log_config, verbose):
        # Handlers filter nothing, logger level applies.
        handler.setLevel(logging.NOTSET)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = log_config.get("enabled", True)

    logger.info(
        f"Dashboard logger ready, level {logging.getLevelName(logger.level)}")
    if "dirpath" in log_config:
        logger.info(
            f"Dashboard logs in {log_config['dirpath']}, kept"
            f" {log_config.get('history', DEFAULT_LOG_HISTORY)} days")


def launch_service(svc_config, *, wait=time.sleep):
    """Launch MQTT dashboard service, until interrupted.

    :param dict svc_config: Loaded dashboard configuration.
    :param callable wait: (optional, default time.sleep)
        Called with a delay in seconds while the service runs.
    :returns bool: False when the service could not run.
    """
    logger.info("Launching MQTT dashboard service (PID %s)...", os.getpid())
    service = Service(svc_config)
    try:
        service.run()
    except ServiceError as exc:
        logger.error("MQTT dashboard service error: %s", str(exc))
        return False
    try:
        while service.is_running:
            wait(1)
    except KeyboardInterrupt:
        logger.info("MQTT dashboard service interrupted")
    finally:
        service.stop()
    return True


if __name__ == "__main__":

    sys.exit(main())
