import logging

from requests.structures import CaseInsensitiveDict

from .exceptions import ApiError, ConfigurationError, NotFoundError, RateLimitError, ValidationError
from .instances import Instances
from .resource import Resource
from .routes import Route, ItemRoute
from .session import Session
from .versions import check_version, load_bundle

__all__ = (
    'Api',
    'Resource',
    'Route',
    'ItemRoute',
    'Session',
    'exceptions',
    'fields',
    'instances',
    'routes',
    'schema',
    'signals',
    'testing',
    'transport',
    'versions',
)

logger = logging.getLogger(__name__)

ERRORS_BY_STATUS = {
    400: ValidationError,
    404: NotFoundError,
    422: ValidationError,
    429: RateLimitError,
}


class Api(object):
    """
    Mounts the resources of one API version.

    Every resource of the version is bound to the :class:`Api` and available as an attribute named after its class::

        api = Api('2022-10', transport=RequestsTransport())
        products = api.Product.all(session, status='active')

    The transport can also be configured later using :meth:`init_transport()`.

    :param str version: API version, e.g. ``'2022-10'``
    :param transport.Transport transport: an optional transport
    :param str prefix: an optional path prefix; may contain ``{version}``. Defaults to ``RESTMOUNT_PATH_PREFIX``
    :param dict config: optional configuration values
    :raises ConfigurationError: if the version is not supported
    """

    def __init__(self, version, transport=None, prefix=None, config=None):
        self.version = check_version(version)
        self.transport = None
        self.resources = {}

        self.config = dict(config or {})
        self.config.setdefault('RESTMOUNT_PATH_PREFIX', '/admin/api/{version}')
        self.config.setdefault('RESTMOUNT_PATH_SUFFIX', '.json')
        self.config.setdefault('RESTMOUNT_MAX_PER_PAGE', 250)
        self.config.setdefault('RESTMOUNT_DEFAULT_PER_PAGE', 50)
        self.instances = Instances(self.config['RESTMOUNT_MAX_PER_PAGE'])

        if prefix is None:
            prefix = self.config['RESTMOUNT_PATH_PREFIX']
        self.prefix = prefix.format(version=version).rstrip('/')

        for resource in load_bundle(version):
            self.add_resource(resource)

        if transport is not None:
            self.init_transport(transport)

    def init_transport(self, transport):
        """
        :param transport.Transport transport: the transport to send requests with
        """
        self.transport = transport

    def add_resource(self, resource):
        """
        Mount a :class:`Resource` class on the API. The class itself is left untouched; a subclass bound to this
        API, with its own pagination cursors, is registered and returned. A resource with the same name replaces
        the one mounted before.

        :param Resource resource: resource
        :return: the bound resource class
        """
        existing = self.resources.get(resource.meta.name)
        if existing is not None and issubclass(existing, resource):
            return existing

        meta = type('Meta', (object,), {
            'name': resource.meta.name,
            'plural': resource.meta.plural,
            'path': resource.meta.path
        })

        bound = type(resource.__name__, (resource,), {
            '__module__': resource.__module__,
            '__doc__': resource.__doc__,
            'Meta': meta,
            'api': self,
            'route_prefix': self.prefix,
            'path_suffix': self.config['RESTMOUNT_PATH_SUFFIX'],
            'NEXT_PAGE_INFO': None,
            'PREV_PAGE_INFO': None
        })

        self.resources[bound.meta.name] = bound
        setattr(self, resource.__name__, bound)
        return bound

    def request(self, method, path, query=None, body=None, session=None):
        """
        Sends a request through the transport and raises an :class:`ApiError` for any non-success status.

        :return: a :class:`transport.Response`
        :raises ConfigurationError: if no transport is configured
        """
        if self.transport is None:
            raise ConfigurationError('No transport configured for {!r}'.format(self))

        logger.debug('%s %s %s', method, path, query or '')
        response = self.transport.request(method, path, query=query or None, body=body, session=session)
        logger.debug('%s %s -> %s', method, path, response.status)
        response = response._replace(headers=CaseInsensitiveDict(response.headers or {}))

        if 200 <= response.status < 300:
            return response

        error_class = ERRORS_BY_STATUS.get(response.status, ApiError)
        raise error_class(response.status, response.body, response.headers)

    def __repr__(self):
        return '<Api {}>'.format(self.version)
