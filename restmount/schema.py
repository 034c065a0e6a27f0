from collections import OrderedDict

from werkzeug.utils import cached_property
from jsonschema import Draft4Validator, FormatChecker

from .exceptions import ValidationError


class Schema(object):
    """
    The base class for all types with a schema in Restmount. Has :attr:`response` and a :attr:`request` attributes
    for the schema to be used, respectively, for reading server data and validating data sent to the server.

    Any class inheriting from schema needs to implement :meth:`schema`.

    ..  attribute:: response

        JSON-schema describing data returned by the server.

    .. attribute:: request

        JSON-schema used for validation of data sent to the server.

    """

    def schema(self):
        """
        Abstract method returning the JSON schema used by both :attr:`response` and :attr:`request`.

        :return: a JSON-schema or a tuple of JSON-schemas in the formats ``(response_schema, request_schema)`` or
            ``(read_schema, create_schema, update_schema)``
        """
        raise NotImplementedError()

    @cached_property
    def response(self):
        schema = self.schema()
        if isinstance(schema, tuple):
            return schema[0]
        return schema

    @cached_property
    def request(self):
        schema = self.schema()
        if isinstance(schema, tuple):
            return schema[1]
        return schema

    create = request

    @cached_property
    def update(self):
        schema = self.schema()
        if isinstance(schema, tuple):
            return schema[-1]
        return schema

    @cached_property
    def _validator(self):
        Draft4Validator.check_schema(self.request)
        return Draft4Validator(self.request, format_checker=FormatChecker())

    @cached_property
    def _update_validator(self):
        Draft4Validator.check_schema(self.update)
        return Draft4Validator(self.update, format_checker=FormatChecker())

    def validate(self, instance, update=False, root=None):
        """
        Validates a JSON-serializable object against :attr:`request` (or :attr:`update`).

        :raises ValidationError: if validation failed
        """
        validator = self._update_validator if update else self._validator
        errors = list(validator.iter_errors(instance))
        if errors:
            raise ValidationError(schema_errors=errors, root=root)
        return instance

    def format(self, value):
        """
        Formats a python object for JSON serialization. Noop by default.
        """
        return value

    def convert(self, instance):
        """
        Converts a deserialized JSON object received from the server into a python object. Noop by default.
        """
        return instance


class FieldSet(Schema):
    """
    A schema representation of a dictionary of :class:`fields.Raw` objects.

    Uses the fields' ``io`` attributes to determine whether they are read-only, write-only, or read-write.
    Properties that are not declared are neither converted nor validated; they pass through unchanged so that
    fields added to the API later survive a load-and-save round trip.

    :param dict fields: a dictionary of :class:`fields.Raw` objects
    :param required_fields: a list or tuple of field names that are required when creating an item
    """

    def __init__(self, fields, required_fields=None):
        self.fields = fields
        self.required = set(required_fields or ())

    def schema(self):
        read_schema = {
            "type": "object",
            "additionalProperties": True,
            "properties": OrderedDict((
                (key, field.response) for key, field in self.fields.items() if 'r' in field.io))
        }

        create_schema = {
            "type": "object",
            "additionalProperties": True,
            "properties": OrderedDict((
                (key, field.request) for key, field in self.fields.items() if 'c' in field.io))
        }

        update_schema = {
            "type": "object",
            "additionalProperties": True,
            "properties": OrderedDict((
                (key, field.request) for key, field in self.fields.items() if 'u' in field.io))
        }

        if self.required:
            create_schema['required'] = sorted(self.required)

        return read_schema, create_schema, update_schema

    def writable(self, key, update=False):
        """
        Whether a property may be sent to the server. Undeclared properties are always writable.
        """
        field = self.fields.get(key)
        if field is None:
            return True
        return ('u' if update else 'c') in field.io

    def format(self, properties):
        """
        Formats a dictionary of python values for JSON serialization.
        """
        result = OrderedDict()
        for key, value in properties.items():
            field = self.fields.get(key)
            result[key] = field.format(value) if field is not None else value
        return result

    def convert(self, instance):
        """
        Converts a JSON object received from the server. Declared fields are converted without validation;
        the server is authoritative for what it returns.
        """
        result = {}
        for key, value in instance.items():
            field = self.fields.get(key)
            result[key] = field.convert(value, validate=False) if field is not None else value
        return result
