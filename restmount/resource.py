import copy
import logging
from collections import OrderedDict

from .exceptions import ConfigurationError, InvalidStateError, MalformedResponse, NotFoundError
from .instances import Page, parse_link_header
from .routes import Route, default_routes
from .schema import FieldSet
from .signals import before_create, after_create, before_update, after_update, before_delete, after_delete, \
    after_instances
from .utils import AttributeDict, encode_query, hybridmethod

logger = logging.getLogger(__name__)

UNSAVED = 'unsaved'
PERSISTED = 'persisted'
DELETED = 'deleted'


class ResourceMeta(type):

    def __new__(mcs, name, bases, members):
        class_ = super(ResourceMeta, mcs).__new__(mcs, name, bases, members)
        class_.meta = meta = AttributeDict(getattr(class_, 'meta', None) or {})

        routes = getattr(class_, 'routes', None)
        if routes is None:
            routes = {route.relation: route for route in default_routes()}
        class_.routes = routes = dict(routes)

        changes = {}
        if 'Meta' in members:
            changes = {k: v for k, v in members['Meta'].__dict__.items() if not k.startswith('__')}
            meta.update(changes)

        # names are never inherited
        meta['name'] = changes.get('name') or name.lower()
        meta['plural'] = changes.get('plural') or '{}s'.format(meta['name'])
        meta['path'] = changes.get('path') or meta['plural']

        fields = {}
        for base in bases:
            if getattr(base, 'schema', None) is not None:
                fields.update(base.schema.fields)

        if 'Schema' in members:
            fields.update({k: f for k, f in members['Schema'].__dict__.items() if not k.startswith('__')})

        for key in meta.get('exclude_fields') or ():
            fields.pop(key, None)

        class_.schema = fs = FieldSet(fields, required_fields=meta.get('required_fields'))

        for key in meta.get('read_only_fields') or ():
            if key in fs.fields and fs.fields[key].io != 'r':
                fs.fields[key] = field = copy.copy(fs.fields[key])
                field.io = 'r'

        for key, member in members.items():
            if isinstance(member, Route):
                if member.attribute is None:
                    member.attribute = key
                routes[member.relation] = member

        for relation, rule in (meta.get('rules') or {}).items():
            if relation in routes:
                routes[relation] = routes[relation].copy(rule=rule)

        for relation in meta.get('exclude_routes') or ():
            routes.pop(relation, None)

        return class_


class Resource(object, metaclass=ResourceMeta):
    """
    A resource of the remote API, mapped onto a Python class.

    A resource is configured using the `Schema` and `Meta` attributes as well as any properties that are of type
    :class:`.routes.Route`. Resources are declared once and mounted on an :class:`Api` for a specific API version;
    operations are only available on the mounted classes (e.g. ``api.Product``).

    :class:`Meta` class attributes:

    =====================  ==============================  ==============================================================================
    Attribute name         Default                         Description
    =====================  ==============================  ==============================================================================
    name                   ---                             Name of the resource and the key wrapping a single item; defaults to the
                                                           lower-case class name
    plural                 ``name + 's'``                  Key wrapping lists of items
    path                   ``plural``                      Collection path template, e.g. ``'products/{product_id}/variants'``
    id_attribute           ``'id'``                        The primary key field
    required_fields        ``()``                          Fields that must be present when creating an item
    read_only_fields       ``()``                          Fields returned by the API that are never sent back, e.g. timestamps
    exclude_fields         ``()``                          Fields inherited from a base resource that this resource does not have
    exclude_routes         ``()``                          A list of relations; matching routes --- including inherited routes
                                                           --- are omitted from the resource
    rules                  ``{}``                          A dictionary of rule templates replacing the rules of inherited routes,
                                                           keyed by relation
    =====================  ==============================  ==============================================================================

    Usage example:

    .. code-block:: python

        class Product(Resource):
            class Schema:
                id = fields.Integer(io="r")
                title = fields.String()

            class Meta:
                name = 'product'
                required_fields = ('title',)

        product = api.Product.find(session, 632910392)
        product.title = 'A new title'
        product.save()

    .. attribute:: api

        Back reference to the :class:`Api` this resource is mounted on.

    .. attribute:: routes

        A dictionary of routes supported by this resource, keyed by ``Route.relation``. Every resource has
        ``read``, ``instances``, ``count``, ``create``, ``update`` and ``destroy`` unless excluded.

    .. attribute:: NEXT_PAGE_INFO
                   PREV_PAGE_INFO

        :class:`PageInfo` objects for the pages following and preceding the most recent :meth:`all` call on this
        class, or ``None``. They are shared by every caller of the class and overwritten by every :meth:`all` call
        without any locking, so concurrent pagination of the same resource will interfere. Use the cursors on the
        returned :class:`Page` or :meth:`iterate` instead when that matters.

    :param session: the session the item belongs to
    :param dict attributes: initial attributes
    """
    api = None
    meta = None
    routes = None
    schema = None
    route_prefix = None
    path_suffix = '.json'

    NEXT_PAGE_INFO = None
    PREV_PAGE_INFO = None

    _instance_attributes = ('session',)

    class Meta:
        id_attribute = 'id'
        required_fields = ()
        read_only_fields = ()
        exclude_fields = ()
        exclude_routes = ()
        rules = {}

    def __init__(self, session, attributes=None, **kwargs):
        self.session = session
        self._attributes = dict(attributes or {}, **kwargs)
        self._snapshot = {}
        self._deleted = False

    def __getattr__(self, name):
        if name.startswith('_'):
            raise AttributeError(name)

        attributes = self.__dict__.get('_attributes', {})
        if name in attributes:
            return attributes[name]
        if self.schema is not None and name in self.schema.fields:
            return self.schema.fields[name].default
        raise AttributeError("'{}' object has no attribute '{}'".format(self.__class__.__name__, name))

    def __setattr__(self, name, value):
        if name.startswith('_') or name in self._instance_attributes or hasattr(self.__class__, name):
            super(Resource, self).__setattr__(name, value)
        else:
            self._attributes[name] = value

    def __delattr__(self, name):
        if name in self.__dict__.get('_attributes', {}):
            del self._attributes[name]
        else:
            super(Resource, self).__delattr__(name)

    def __repr__(self):
        return '<{} {}>'.format(self.__class__.__name__, self.primary_key if self.primary_key is not None else 'new')

    @property
    def attributes(self):
        return dict(self._attributes)

    @property
    def primary_key(self):
        return self._attributes.get(self.meta.id_attribute)

    @property
    def state(self):
        if self._deleted:
            return DELETED
        if self.primary_key is None:
            return UNSAVED
        return PERSISTED

    @property
    def is_dirty(self):
        """``True`` if the attributes differ from what was last received from the server."""
        return self._attributes != self._snapshot

    def check_state(self, operation):
        if self._deleted:
            raise InvalidStateError(self, operation)

    @classmethod
    def _route(cls, relation):
        try:
            return cls.routes[relation]
        except KeyError:
            raise ConfigurationError('"{}" does not support "{}"'.format(cls.meta.name, relation))

    @classmethod
    def _mounted_api(cls):
        if cls.api is None:
            raise ConfigurationError('{} is not mounted on an Api; use api.{} instead'.format(
                cls.__name__, cls.__name__))
        return cls.api

    @classmethod
    def send(cls, route, session, params=None, body=None, values=None):
        """
        Sends the request for ``route``. Parameters that fill placeholders in the route rule are removed from the
        query string.

        :param Route route:
        :param session: the session to send the request with
        :param dict params: query parameters and placeholder values
        :param body: JSON-serializable request body
        :param dict values: placeholder values that are not query parameters
        :return: a :class:`transport.Response` with a success status
        """
        api = cls._mounted_api()
        if session is None:
            raise ConfigurationError('A session is required to use {}'.format(cls.__name__))

        params = dict(params or {})
        values = dict(values or {})
        for name in route.placeholders(cls):
            if name in params:
                values[name] = params.pop(name)

        path = route.path_factory(cls, values)
        return api.request(route.method, path, query=encode_query(params), body=body, session=session)

    def send_item(self, route, params=None, body=None):
        values = dict(self._attributes)
        values['id'] = self.primary_key
        return self.send(route, self.session, params, body=body, values=values)

    @classmethod
    def unwrap(cls, response, key, type_):
        """
        Returns the value wrapped in ``key`` in a response body.

        :raises MalformedResponse: if the body has no ``key`` or its value is not a ``type_``
        """
        body = response.body
        if not isinstance(body, dict) or not isinstance(body.get(key), type_):
            raise MalformedResponse(response.status, body, response.headers,
                                    message='Expected "{}" in response from {}'.format(key, cls.meta.name))
        return body[key]

    @classmethod
    def _convert(cls, data, response=None):
        status, headers, body = response if response is not None else (None, None, None)

        if not isinstance(data, dict) or data.get(cls.meta.id_attribute) is None:
            raise MalformedResponse(status, body, headers,
                                    message='{} in response has no "{}"'.format(cls.meta.name,
                                                                                 cls.meta.id_attribute))
        try:
            return cls.schema.convert(data)
        except ValueError as e:
            raise MalformedResponse(status, body, headers, message='Invalid {}: {}'.format(cls.meta.name, e))

    @classmethod
    def from_server(cls, session, data, response=None):
        """
        Returns an instance for an item representation received from the server.

        :raises MalformedResponse: if the representation has no primary key or cannot be converted
        """
        instance = cls(session)
        instance.update_from_server(data, response)
        return instance

    def update_from_server(self, data, response=None):
        """
        Replaces all attributes with an item representation received from the server.
        """
        converted = self._convert(data, response)
        self._attributes = converted
        self._snapshot = copy.deepcopy(converted)

    def serialize(self, update=False):
        """
        Returns the request body for saving this item: the primary key and every attribute that is not read-only,
        wrapped in the resource name.

        :raises ValidationError: if the attributes do not match the resource schema
        """
        id_attribute = self.meta.id_attribute
        read_only = set(self.meta.get('read_only_fields') or ())

        properties = OrderedDict()
        if self.primary_key is not None:
            properties[id_attribute] = self.primary_key

        for key, value in self._attributes.items():
            if key == id_attribute or key in read_only or not self.schema.writable(key, update):
                continue
            properties[key] = value

        data = self.schema.format(properties)
        self.schema.validate(data, update=update, root=self.meta.name)
        return {self.meta.name: data}

    @classmethod
    def find(cls, session, id, **params):
        """
        Reads one item.

        :param session:
        :param id: primary key
        :param params: query parameters, or values for placeholders in the rule such as ``product_id``
        :raises NotFoundError: if there is no such item
        """
        response = cls.send(cls._route('read'), session, params, values={'id': id})
        return cls.from_server(session, cls.unwrap(response, cls.meta.name, dict), response)

    @classmethod
    def find_or_none(cls, session, id, **params):
        """
        Like :meth:`find`, but returns ``None`` if there is no such item.
        """
        try:
            return cls.find(session, id, **params)
        except NotFoundError:
            return None

    @classmethod
    def all(cls, session, **params):
        """
        Reads one page of items.

        Replaces ``NEXT_PAGE_INFO`` and ``PREV_PAGE_INFO`` on this class with the cursors from the response; a
        cursor is ``None`` when there is no such page.

        :param session:
        :param params: filters, ``limit``, ``page_info``, or values for placeholders in the rule
        :return: a :class:`Page` of items
        """
        route = cls._route('instances')
        cls._mounted_api().instances.validate(params, root=cls.meta.plural)

        response = cls.send(route, session, params)
        items = [cls.from_server(session, data, response)
                 for data in cls.unwrap(response, cls.meta.plural, list)]

        next_page = previous_page = None
        if route.paginated:
            try:
                next_page, previous_page = parse_link_header(response.headers.get('Link'))
            except MalformedResponse as e:
                raise MalformedResponse(response.status, response.body, response.headers, message=str(e))

        page = Page(items, next_page, previous_page)
        cls.NEXT_PAGE_INFO = next_page
        cls.PREV_PAGE_INFO = previous_page

        after_instances.send(cls, page=page)
        return page

    @classmethod
    def iterate(cls, session, **params):
        """
        Yields every item across all pages, following the cursors returned with each page.
        """
        route = cls._route('instances')
        path_params = {name: params[name] for name in route.placeholders(cls) if name in params}

        page = cls.all(session, **params)
        while True:
            for item in page:
                yield item

            if page.next_page_info is None:
                break

            query = dict(path_params)
            query.update(page.next_page_info.query)
            page = cls.all(session, **query)

    @classmethod
    def count(cls, session, **params):
        response = cls.send(cls._route('count'), session, params)
        count = response.body.get('count') if isinstance(response.body, dict) else None

        if isinstance(count, bool) or not isinstance(count, int):
            raise MalformedResponse(response.status, response.body, response.headers,
                                    message='Expected an integer "count" in response from {}'.format(cls.meta.name))
        return count

    def save(self, update=True):
        """
        Creates the item if it has no primary key, otherwise updates it.

        The primary key is always taken from the response. If ``update`` is ``True``, all other attributes are
        replaced with the ones in the response as well. Nothing is changed if the call fails.

        ``before_create`` or ``before_update`` is sent once the attributes have passed validation, just before the
        request.

        :param bool update: whether to refresh attributes from the response
        :raises ValidationError: if the attributes were rejected
        """
        self.check_state('save')

        creating = self.primary_key is None
        cls = self.__class__
        route = self._route('create' if creating else 'update')

        body = self.serialize(update=not creating)
        (before_create if creating else before_update).send(cls, item=self)

        response = self.send_item(route, body=body)
        data = self.unwrap(response, self.meta.name, dict)
        converted = self._convert(data, response)

        if update:
            self._attributes = converted
            self._snapshot = copy.deepcopy(converted)
        else:
            self._attributes[self.meta.id_attribute] = converted[self.meta.id_attribute]

        logger.debug('%s %s %r', 'Created' if creating else 'Updated', self.meta.name, self.primary_key)
        (after_create if creating else after_update).send(cls, item=self)
        return self

    def reload(self, **params):
        """
        Replaces all attributes with the current representation on the server.
        """
        self.check_state('reload')
        response = self.send_item(self._route('read'), params)
        self.update_from_server(self.unwrap(response, self.meta.name, dict), response)
        return self

    @hybridmethod
    def delete(self, **params):
        """
        Deletes this item. A deleted item cannot be saved, reloaded or deleted again.
        """
        self.check_state('delete')
        cls = self.__class__
        route = self._route('destroy')

        before_delete.send(cls, item=self, id=self.primary_key)
        self.send_item(route, params)
        self._deleted = True
        after_delete.send(cls, item=self, id=self.primary_key)

    @delete.classlevel
    def delete(cls, session, id, **params):
        """
        Deletes the item with the given primary key.
        """
        route = cls._route('destroy')

        before_delete.send(cls, item=None, id=id)
        cls.send(route, session, params, values={'id': id})
        after_delete.send(cls, item=None, id=id)
