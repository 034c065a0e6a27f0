from urllib.parse import urlsplit, parse_qs

from requests.utils import parse_header_links

from .exceptions import MalformedResponse
from .schema import Schema

NEXT_RELATIONS = ('next',)
PREVIOUS_RELATIONS = ('previous', 'prev')


class PageInfo(object):
    """
    A cursor to one page of a list, decoded from a ``Link`` header URL.

    .. attribute:: query

        Query parameters that request the page when passed back to :meth:`Resource.all`::

            products = api.Product.all(session, limit=50)
            while api.Product.NEXT_PAGE_INFO:
                products = api.Product.all(session, **api.Product.NEXT_PAGE_INFO.query)

    :param str url: the link URL
    :param str path: the path part of the URL
    :param str page_info: opaque cursor token
    :param int limit: page size
    :param fields: list of field names restricting the response, if the original request had any
    """

    def __init__(self, url, path, page_info, limit=None, fields=None):
        self.url = url
        self.path = path
        self.page_info = page_info
        self.limit = limit
        self.fields = fields

    @classmethod
    def from_url(cls, url):
        parts = urlsplit(url)
        args = parse_qs(parts.query)

        try:
            page_info = args['page_info'][0]
        except (KeyError, IndexError):
            raise MalformedResponse(message='Pagination link without page_info: {}'.format(url))

        limit = None
        if 'limit' in args:
            try:
                limit = int(args['limit'][0])
            except ValueError:
                raise MalformedResponse(message='Pagination link with invalid limit: {}'.format(url))

        fields = None
        if 'fields' in args:
            fields = [f for f in args['fields'][0].split(',') if f]

        return cls(url, parts.path, page_info, limit, fields)

    @property
    def query(self):
        query = {'page_info': self.page_info}
        if self.limit is not None:
            query['limit'] = self.limit
        if self.fields:
            query['fields'] = ','.join(self.fields)
        return query

    def __eq__(self, other):
        return isinstance(other, PageInfo) and self.url == other.url

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self.url)

    def __repr__(self):
        return '<PageInfo {}>'.format(self.page_info)


def parse_link_header(value):
    """
    Decode a ``Link`` header into ``(next, previous)`` :class:`PageInfo` objects; either may be ``None``.

    :raises MalformedResponse: if the header cannot be interpreted
    """
    next_page = previous_page = None

    if not value:
        return next_page, previous_page

    for link in parse_header_links(value):
        rel = link.get('rel')
        url = link.get('url')

        if not rel or not url:
            raise MalformedResponse(message='Malformed Link header: {}'.format(value))

        if rel in NEXT_RELATIONS:
            next_page = PageInfo.from_url(url)
        elif rel in PREVIOUS_RELATIONS:
            previous_page = PageInfo.from_url(url)

    return next_page, previous_page


class Page(list):
    """
    One page of items returned by :meth:`Resource.all`, in server order.

    The cursors are carried on the result, so they belong to this call alone; prefer them over the
    ``NEXT_PAGE_INFO``/``PREV_PAGE_INFO`` class attributes when several callers list the same resource at once.

    .. attribute:: next_page_info

        :class:`PageInfo` for the following page or ``None`` on the last page.

    .. attribute:: previous_page_info

        :class:`PageInfo` for the preceding page or ``None`` on the first page.
    """

    def __init__(self, items=(), next_page_info=None, previous_page_info=None):
        super(Page, self).__init__(items)
        self.next_page_info = next_page_info
        self.previous_page_info = previous_page_info

    @property
    def has_next_page(self):
        return self.next_page_info is not None

    @property
    def has_previous_page(self):
        return self.previous_page_info is not None


class Instances(Schema):
    """
    Validates the query parameters of a list request.

    :param int max_per_page: largest accepted ``limit``
    """

    def __init__(self, max_per_page=250):
        self.max_per_page = max_per_page

    def schema(self):
        request_schema = {
            "type": "object",
            "properties": {
                "limit": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": self.max_per_page
                },
                "page_info": {
                    "type": "string",
                    "minLength": 1
                }
            },
            "additionalProperties": True
        }

        response_schema = {
            "type": "array",
            "items": {"type": "object"}
        }

        return response_schema, request_schema

    def validate(self, instance, update=False, root=None):
        limit = instance.get('limit')
        if isinstance(limit, str) and limit.isdigit():
            instance = dict(instance, limit=int(limit))
        return super(Instances, self).validate(instance, update, root)
