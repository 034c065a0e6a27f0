import base64
import json
import logging
from collections import namedtuple, OrderedDict
from datetime import datetime, timezone
from functools import partial
from urllib.parse import urlencode

from flask import Flask, request
from requests.structures import CaseInsensitiveDict

from .transport import Response, Transport
from .utils import rule_to_url_rule

logger = logging.getLogger(__name__)

RecordedRequest = namedtuple('RecordedRequest', ('method', 'path', 'query', 'body'))

BACKEND_ROUTES = ('read', 'instances', 'count', 'create', 'update', 'destroy')


class FlaskTransport(Transport):
    """
    A :class:`Transport` sending requests through the test client of a Flask application, without a network.

    :param flask.Flask app: the application serving the API
    :param str auth_header: name of the header carrying the session's access token
    """

    def __init__(self, app, auth_header='X-Shopify-Access-Token'):
        self.app = app
        self.auth_header = auth_header
        self.client = app.test_client()

    def request(self, method, path, query=None, body=None, session=None):
        headers = {'Accept': 'application/json'}
        access_token = getattr(session, 'access_token', None)
        if access_token:
            headers[self.auth_header] = access_token

        kwargs = {}
        if body is not None:
            kwargs['json'] = body

        response = self.client.open(path, method=method, query_string=query or None, headers=headers, **kwargs)
        return Response(response.status_code,
                        CaseInsensitiveDict(response.headers.items()),
                        response.get_json(silent=True))


def _coerce(value):
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value


def _matches(item, key, value):
    if key == 'ids':
        return str(item.get('id')) in value.split(',')
    if key == 'since_id':
        return item.get('id') is not None and item['id'] > int(value)

    item_value = item.get(key)
    if isinstance(item_value, bool):
        item_value = 'true' if item_value else 'false'
    return item_value is not None and str(item_value) == value


def _now():
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


class MemoryBackend(object):
    """
    An in-memory, pure-python server for every resource mounted on an :class:`Api`, following the conventions of
    the remote API: items wrapped in the resource name, cursor pagination through ``Link`` headers, ``count``
    endpoints and ``{"errors": ...}`` bodies for failed requests.

    .. warning::

        This backend is intended for debugging & testing only.

    Usage::

        api = Api('2022-10')
        backend = MemoryBackend(api)
        api.init_transport(backend.transport())
        backend.add('product', {'id': 1, 'title': 'Shoes'})

    :param Api api: the mounted resources to serve
    :param str access_token: if set, requests without this token are rejected with status 401
    :param int default_per_page: page size when a request has no ``limit``, at most ``max_per_page``
    :param int max_per_page: largest accepted ``limit``
    """

    def __init__(self, api, access_token=None, default_per_page=None, max_per_page=None):
        self.api = api
        self.access_token = access_token
        self.max_per_page = max_per_page or api.config['RESTMOUNT_MAX_PER_PAGE']
        self.default_per_page = min(default_per_page or api.config['RESTMOUNT_DEFAULT_PER_PAGE'], self.max_per_page)
        self.id_sequence = 1000
        self.items = {name: OrderedDict() for name in api.resources}
        self.requests = []

        self.app = app = Flask(__name__)
        app.before_request(self._before_request)

        for resource in api.resources.values():
            self._register(resource)

    def transport(self):
        return FlaskTransport(self.app)

    def _register(self, resource):
        for relation in BACKEND_ROUTES:
            route = resource.routes.get(relation)
            if route is None:
                continue

            rule = '{}/{}{}'.format(self.api.prefix,
                                    rule_to_url_rule(route.rule_factory(resource)),
                                    resource.path_suffix)

            self.app.add_url_rule(rule,
                                  '{}_{}'.format(resource.meta.name, relation),
                                  partial(getattr(self, '_{}'.format(relation)), resource),
                                  methods=[route.method])

    def _new_item_id(self):
        self.id_sequence += 1
        return self.id_sequence

    def add(self, name, properties):
        """
        Stores an item directly, bypassing validation. An ``id`` is assigned if the item has none.

        :param str name: resource name, e.g. ``'product'``
        :param dict properties: the item
        :return: the stored item
        """
        item = dict(properties)
        if item.get('id') is None:
            item['id'] = self._new_item_id()
        else:
            self.id_sequence = max(self.id_sequence, item['id'])

        self.items[name][item['id']] = item
        return item

    def _before_request(self):
        self.requests.append(RecordedRequest(request.method,
                                             request.path,
                                             request.args.to_dict(),
                                             request.get_json(silent=True)))

        if self.access_token is not None and request.headers.get('X-Shopify-Access-Token') != self.access_token:
            return {'errors': '[API] Invalid API key or access token (unrecognized login or wrong password)'}, 401

    def _scoped(self, resource, scope):
        for item in self.items[resource.meta.name].values():
            if all(_matches(item, key, value) for key, value in scope.items()):
                yield item

    def _get(self, resource, id, scope):
        item = self.items[resource.meta.name].get(_coerce(id))
        if item is None or not all(_matches(item, key, value) for key, value in scope.items()):
            return None
        return item

    @staticmethod
    def _not_found():
        return {'errors': 'Not Found'}, 404

    @staticmethod
    def _invalid(errors, status=400):
        return {'errors': errors}, status

    @staticmethod
    def _encode_cursor(cursor):
        return base64.urlsafe_b64encode(json.dumps(cursor, sort_keys=True).encode('utf-8')).decode('ascii')

    @staticmethod
    def _decode_cursor(page_info):
        try:
            cursor = json.loads(base64.urlsafe_b64decode(page_info.encode('ascii')).decode('utf-8'))
        except ValueError:
            return None
        if not isinstance(cursor, dict) or not isinstance(cursor.get('offset'), int):
            return None
        return cursor

    def _link(self, cursor, limit):
        query = OrderedDict([('limit', limit), ('page_info', self._encode_cursor(cursor))])
        if cursor.get('fields'):
            query['fields'] = cursor['fields']
        return '{}?{}'.format(request.base_url, urlencode(query))

    def _payload(self, resource):
        body = request.get_json(silent=True)
        if not isinstance(body, dict) or not isinstance(body.get(resource.meta.name), dict):
            return None
        return body[resource.meta.name]

    def _writable(self, resource, data, update):
        read_only = set(resource.meta.get('read_only_fields') or ())
        return {key: value for key, value in data.items()
                if key != resource.meta.id_attribute
                and key not in read_only
                and resource.schema.writable(key, update)}

    def _stamp(self, resource, item, created=False):
        now = _now()
        fields = resource.schema.fields
        if created and 'created_at' in fields:
            item['created_at'] = now
        if 'updated_at' in fields:
            item['updated_at'] = now
        if 'admin_graphql_api_id' in fields:
            item['admin_graphql_api_id'] = 'gid://shopify/{}/{}'.format(resource.__name__, item['id'])

    def _read(self, resource, id, **scope):
        item = self._get(resource, id, scope)
        if item is None:
            return self._not_found()
        return {resource.meta.name: item}

    def _instances(self, resource, **scope):
        args = request.args.to_dict()
        page_info = args.pop('page_info', None)
        fields = args.pop('fields', None)

        try:
            limit = int(args.pop('limit', self.default_per_page))
        except ValueError:
            return self._invalid({'limit': ['is not a number']})
        if not 1 <= limit <= self.max_per_page:
            return self._invalid({'limit': ['must be between 1 and {}'.format(self.max_per_page)]})

        if page_info is not None:
            cursor = self._decode_cursor(page_info)
            if cursor is None:
                return self._invalid({'page_info': ['Invalid value.']})
            if args:
                return self._invalid({'page_info': ['cannot be combined with other filters']})
        else:
            cursor = {'offset': 0, 'where': args}
            if fields:
                cursor['fields'] = fields

        where = cursor.get('where') or {}
        items = [item for item in self._scoped(resource, scope)
                 if all(_matches(item, key, value) for key, value in where.items())]

        offset = cursor['offset']
        page = items[offset:offset + limit]

        if cursor.get('fields'):
            names = cursor['fields'].split(',')
            page = [{key: value for key, value in item.items() if key in names} for item in page]

        links = []
        if offset > 0:
            links.append('<{}>; rel="previous"'.format(self._link(dict(cursor, offset=max(offset - limit, 0)), limit)))
        if offset + limit < len(items):
            links.append('<{}>; rel="next"'.format(self._link(dict(cursor, offset=offset + limit), limit)))

        headers = {}
        if links:
            headers['Link'] = ', '.join(links)
        return {resource.meta.plural: page}, 200, headers

    def _count(self, resource, **scope):
        where = request.args.to_dict()
        count = sum(1 for item in self._scoped(resource, scope)
                    if all(_matches(item, key, value) for key, value in where.items()))
        return {'count': count}

    def _create(self, resource, **scope):
        data = self._payload(resource)
        if data is None:
            return self._invalid({resource.meta.name: ['Required parameter missing or invalid']})

        missing = [key for key in sorted(resource.schema.required) if data.get(key) in (None, '')]
        if missing:
            return self._invalid({key: ["can't be blank"] for key in missing}, 422)

        item = self._writable(resource, data, update=False)
        item['id'] = self._new_item_id()
        item.update({key: _coerce(value) for key, value in scope.items()})
        self._stamp(resource, item, created=True)

        self.items[resource.meta.name][item['id']] = item
        logger.debug('Created %s %s', resource.meta.name, item['id'])
        return {resource.meta.name: item}, 201

    def _update(self, resource, id, **scope):
        item = self._get(resource, id, scope)
        if item is None:
            return self._not_found()

        data = self._payload(resource)
        if data is None:
            return self._invalid({resource.meta.name: ['Required parameter missing or invalid']})

        item.update(self._writable(resource, data, update=True))
        self._stamp(resource, item)
        return {resource.meta.name: item}

    def _destroy(self, resource, id, **scope):
        item = self._get(resource, id, scope)
        if item is None:
            return self._not_found()

        del self.items[resource.meta.name][item['id']]
        return {}
