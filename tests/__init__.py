import json
from unittest import TestCase

from requests.structures import CaseInsensitiveDict

from restmount import Api, Session
from restmount.testing import MemoryBackend
from restmount.transport import Response, Transport


class RecordingTransport(Transport):
    """
    Returns canned responses in order and records every request.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def respond(self, status=200, body=None, headers=None):
        self.responses.append(Response(status, CaseInsensitiveDict(headers or {}), body))

    def request(self, method, path, query=None, body=None, session=None):
        self.requests.append((method, path, query, body))
        return self.responses.pop(0)

    @property
    def last_request(self):
        return self.requests[-1]


class BaseTestCase(TestCase):
    version = '2022-10'

    def setUp(self):
        super(BaseTestCase, self).setUp()
        self.api = Api(self.version)
        self.backend = MemoryBackend(self.api)
        self.api.init_transport(self.backend.transport())
        self.session = Session('test-shop.myshopify.com', 'shpat_test')

    def assertJSONEqual(self, first, second, msg=None):
        self.assertEqual(json.loads(json.dumps(first)), json.loads(json.dumps(second)), msg)

    def _without(self, dct, without):
        return {k: v for k, v in dct.items() if k not in without}

    def assertEqualWithout(self, first, second, without, msg=None):
        if isinstance(first, list) and isinstance(second, list):
            self.assertEqual(
                [self._without(v, without) for v in first],
                [self._without(v, without) for v in second],
                msg=msg
            )
        elif isinstance(first, dict) and isinstance(second, dict):
            self.assertEqual(self._without(first, without),
                             self._without(second, without),
                             msg=msg)
        else:
            self.maxDiff = None
            self.assertEqual(first, second)

    def recording_api(self, *responses, version=None):
        transport = RecordingTransport(*responses)
        return Api(version or self.version, transport=transport), transport
