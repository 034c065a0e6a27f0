import logging
from collections import namedtuple

import requests
from requests.structures import CaseInsensitiveDict

from .exceptions import ConfigurationError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class Response(namedtuple('Response', ('status', 'headers', 'body'))):
    """
    A transport-independent HTTP response.

    :param int status: HTTP status code
    :param headers: a case-insensitive mapping of response headers
    :param body: the decoded JSON body, or ``None`` when the response had no JSON body
    """

    @property
    def ok(self):
        return 200 <= self.status < 300


class Transport(object):
    """
    The interface a transport must implement. Transports own connection handling, timeouts and retries; the
    resource layer only ever calls :meth:`request`.
    """

    def request(self, method, path, query=None, body=None, session=None):
        """
        :param str method: HTTP method name (upper case)
        :param str path: absolute request path, including the API prefix
        :param dict query: query string parameters
        :param body: JSON-serializable request body or ``None``
        :param session: the session the request is made with
        :return: a :class:`Response`
        :raises TransportError: if no response could be obtained
        """
        raise NotImplementedError()


class RequestsTransport(Transport):
    """
    A :class:`Transport` sending requests over HTTP with :mod:`requests`.

    The session must have ``shop`` (the host, e.g. ``example.myshopify.com``) and ``access_token`` attributes.

    :param str scheme: URL scheme
    :param float timeout: request timeout in seconds, passed on to :mod:`requests`
    :param str auth_header: name of the header carrying the session's access token
    :param requests.Session http: optional :class:`requests.Session` to reuse connections
    """

    def __init__(self, scheme='https', timeout=DEFAULT_TIMEOUT, auth_header='X-Shopify-Access-Token', http=None):
        self.scheme = scheme
        self.timeout = timeout
        self.auth_header = auth_header
        self.http = http or requests.Session()

    def url(self, session, path):
        shop = getattr(session, 'shop', None)
        if not shop:
            raise ConfigurationError('Session {!r} has no shop'.format(session))
        return '{}://{}{}'.format(self.scheme, shop.rstrip('/'), path)

    def headers(self, session):
        headers = {'Accept': 'application/json'}
        access_token = getattr(session, 'access_token', None)
        if access_token:
            headers[self.auth_header] = access_token
        return headers

    def request(self, method, path, query=None, body=None, session=None):
        url = self.url(session, path)

        try:
            response = self.http.request(method,
                                         url,
                                         params=query or None,
                                         json=body,
                                         headers=self.headers(session),
                                         timeout=self.timeout)
        except requests.RequestException as e:
            logger.debug('%s %s failed: %s', method, url, e)
            raise TransportError('{} {} failed: {}'.format(method, url, e)) from e

        data = None
        if response.content:
            try:
                data = response.json()
            except ValueError:
                data = None

        return Response(response.status_code, CaseInsensitiveDict(response.headers), data)
