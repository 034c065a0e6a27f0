import datetime
import re
from functools import partial

from .exceptions import ConfigurationError

PLACEHOLDER_PATTERN = re.compile(r'{(\w+)}')


def placeholders(rule):
    """Return the placeholder names in a rule template, in order."""
    return PLACEHOLDER_PATTERN.findall(rule)


def expand_rule(rule, values, resource=None):
    """
    Substitute every ``{name}`` placeholder in ``rule``.

    :raises ConfigurationError: if a placeholder has no value
    """
    def replace(match):
        name = match.group(1)
        value = values.get(name)
        if value is None or value == '':
            raise ConfigurationError('Missing value for "{}" in "{}"{}'.format(
                name, rule, ' ({})'.format(resource.meta.name) if resource is not None else ''))
        return str(value)

    return PLACEHOLDER_PATTERN.sub(replace, rule)


def rule_to_url_rule(rule):
    """Convert a ``{name}`` template into a Flask URL rule with ``<name>`` variables."""
    return PLACEHOLDER_PATTERN.sub(r'<\1>', rule)


def _encode_value(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, (list, tuple, set)):
        return ','.join(str(_encode_value(v)) for v in value)
    return value


def encode_query(params):
    """Convert keyword params into a query dictionary; ``None`` values are dropped."""
    return {key: _encode_value(value) for key, value in params.items() if value is not None}


# --- start of Flask-RESTful code ---
# Copyright (c) 2013, Twilio, Inc.
# All rights reserved.
# This code is part of Flask-RESTful and is governed by its
# license. Please see the LICENSE file in the root of this package.
def get_value(key, obj, default):
    if hasattr(obj, '__getitem__'):
        try:
            return obj[key]
        except (IndexError, TypeError, KeyError):
            pass
    return getattr(obj, key, default)
# --- end of Flask-RESTful code ---


class AttributeDict(dict):
    __getattr__ = dict.__getitem__
    __setattr__ = dict.__setitem__


class hybridmethod(object):
    """
    A method that receives the class when called on the class and the instance when called on an instance,
    dispatching to a separate class-level implementation set with :meth:`classlevel`.
    """

    def __init__(self, func):
        self.func = func
        self.class_func = None

    def classlevel(self, func):
        self.class_func = func
        return self

    def __get__(self, obj, owner):
        if obj is None:
            return partial(self.class_func, owner)
        return partial(self.func, obj)
