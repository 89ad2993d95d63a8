"""Configuration schemas"""

import marshmallow as ma

from mqtt_dashboard.settings import Config
from mqtt_dashboard.conversion import stringify
from mqtt_dashboard.model import ColorRule, ConversionRule


class Text(ma.fields.Field):
    """Text field, numbers and booleans being stringified"""

    default_error_messages = {
        "invalid": "Not a valid text or number.",
    }

    def _deserialize(self, value, attr, data, **kwargs):
        if not isinstance(value, (str, int, float, bool)):
            raise self.make_error("invalid")
        return stringify(value)


class Schema(ma.Schema):
    """Base schema, unknown fields (used by other tools) are ignored"""

    class Meta:
        unknown = ma.EXCLUDE


class ColorRuleSchema(Schema):

    up_to = ma.fields.Float(data_key="upTo", allow_none=True)
    label = ma.fields.String()
    value = ma.fields.String()
    suffix = ma.fields.String()

    @ma.post_load
    def make_rule(self, data, **kwargs):
        return ColorRule(**data)


class ConversionRuleSchema(Schema):

    from_value = Text(data_key="from", required=True)
    to_value = Text(data_key="to", required=True)

    @ma.post_load
    def make_rule(self, data, **kwargs):
        return ConversionRule(**data)


class SubscriptionSchema(Schema):

    topic = ma.fields.String(
        required=True, validate=ma.validate.Length(min=1))
    label = ma.fields.String(load_default="")
    suffix = ma.fields.String(load_default="")
    icon = ma.fields.String(load_default="")
    show_label_as_icon = ma.fields.Boolean(
        data_key="showLabelAsIcon", load_default=False)
    position = ma.fields.Integer(load_default=Config.POSITION)
    colors = ma.fields.List(
        ma.fields.Nested(ColorRuleSchema), load_default=None)
    conversion = ma.fields.List(
        ma.fields.Nested(ConversionRuleSchema), load_default=None)
    factor = ma.fields.Float(load_default=None, allow_none=True)
    offset = ma.fields.Float(load_default=None, allow_none=True)
    decimals = ma.fields.Integer(
        load_default=Config.DECIMALS, validate=ma.validate.Range(0, 100))


class AuthSchema(Schema):

    user = ma.fields.String(required=True)
    password = ma.fields.String(load_default=None, allow_none=True)

    @ma.pre_load
    def rename_pass(self, data, **kwargs):
        # "pass" is accepted as an alias of "password".
        if (isinstance(data, dict) and "pass" in data
                and "password" not in data):
            data = dict(data)
            data["password"] = data.pop("pass")
        return data


class BrokerSchema(Schema):

    url = ma.fields.String(required=True, validate=ma.validate.Length(min=1))
    port = ma.fields.Integer(
        load_default=None, allow_none=True,
        validate=ma.validate.Range(1, 65535))
    auth = ma.fields.Nested(AuthSchema, load_default=None, allow_none=True)
    subscriptions = ma.fields.List(
        ma.fields.Nested(SubscriptionSchema), load_default=list)


class LoggingSchema(Schema):

    enabled = ma.fields.Boolean(load_default=True)
    level = ma.fields.Raw(load_default="WARNING")
    format = ma.fields.String()
    dirpath = ma.fields.String()
    history = ma.fields.Integer(
        load_default=30, validate=ma.validate.Range(min=0))


class ConfigSchema(Schema):
    """Dashboard configuration file schema"""

    header = ma.fields.String(load_default=Config.HEADER)
    animation_speed = ma.fields.Integer(
        data_key="animationSpeed", load_default=Config.ANIMATION_SPEED,
        validate=ma.validate.Range(min=0))
    port = ma.fields.Integer(
        load_default=Config.PORT, validate=ma.validate.Range(1, 65535))
    logging = ma.fields.Nested(LoggingSchema, load_default=dict)
    mqtt_brokers = ma.fields.List(
        ma.fields.Nested(BrokerSchema), data_key="mqttBrokers",
        load_default=list)
