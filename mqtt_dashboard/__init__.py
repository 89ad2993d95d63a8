"""MQTT dashboard

Displays live values of MQTT topics, converted, scaled, colored and averaged
per subscription.
"""

__version__ = "0.1.0"
__binname__ = "mqtt-dashboard"
__description__ = "Live MQTT values dashboard"
__author__ = "MQTT dashboard developers"

LOGNAME = "mqtt_dashboard"
