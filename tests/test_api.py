from unittest import mock

from restmount import Api, Resource, fields, versions
from restmount.exceptions import ConfigurationError, NotFoundError, ValidationError, RateLimitError, ApiError
from restmount.rest import v2022_10, v2023_01
from tests import BaseTestCase, RecordingTransport


class ApiTestCase(BaseTestCase):

    def test_mount_version(self):
        api = Api('2022-10')

        self.assertEqual('2022-10', api.version)
        self.assertEqual('/admin/api/2022-10', api.prefix)
        self.assertEqual({'product', 'variant', 'customer', 'order'}, set(api.resources))
        self.assertIs(api.Product, api.resources['product'])
        self.assertIs(api, api.Product.api)
        self.assertTrue(issubclass(api.Product, v2022_10.Product))
        self.assertEqual('/admin/api/2022-10', api.Product.route_prefix)
        self.assertIsNone(v2022_10.Product.api)

    def test_versions_are_isolated(self):
        old, new = Api('2022-10'), Api('2023-01')

        self.assertIsNot(old.Product, new.Product)
        self.assertEqual('/admin/api/2023-01', new.Product.route_prefix)

        old.Product.NEXT_PAGE_INFO = 'cursor'
        self.assertIsNone(new.Product.NEXT_PAGE_INFO)
        self.assertIsNone(v2022_10.Product.NEXT_PAGE_INFO)

    def test_same_version_mounted_twice(self):
        first, second = Api('2022-10'), Api('2022-10')
        first.Order.PREV_PAGE_INFO = 'cursor'
        self.assertIsNone(second.Order.PREV_PAGE_INFO)

    def test_version_specific_fields(self):
        old, new = Api('2022-10'), Api('2023-01')

        self.assertIn('accepts_marketing', old.Customer.schema.fields)
        self.assertNotIn('email_marketing_consent', old.Customer.schema.fields)

        self.assertNotIn('accepts_marketing', new.Customer.schema.fields)
        self.assertIn('email_marketing_consent', new.Customer.schema.fields)
        self.assertIn('email', new.Customer.schema.fields)
        self.assertTrue(issubclass(new.Customer, v2023_01.Customer))
        self.assertEqual('customer', new.Customer.meta.name)
        self.assertEqual('customers', new.Customer.meta.path)

    def test_unsupported_version(self):
        with self.assertRaises(ConfigurationError):
            Api('2019-04')

        with self.assertRaises(ConfigurationError):
            Api('')

    def test_unstable_version_warns_once(self):
        versions._advised_versions.discard(versions.UNSTABLE)

        with self.assertLogs('restmount.versions', level='WARNING') as logs:
            Api('unstable')
            Api('unstable')

        self.assertEqual(1, len(logs.output))
        self.assertIn('unstable', logs.output[0])

    def test_stable_version_does_not_warn(self):
        with mock.patch.object(versions.logger, 'warning') as warning:
            Api('2022-10')
            Api('2023-01')

        warning.assert_not_called()

    def test_unstable_resources(self):
        api = Api('unstable')
        self.assertEqual('/admin/api/unstable', api.prefix)
        self.assertIn('sms_marketing_consent', api.Customer.schema.fields)

    def test_custom_prefix_and_config(self):
        transport = RecordingTransport()
        api = Api('2022-10', transport=transport, prefix='/api/{version}/', config={'RESTMOUNT_PATH_SUFFIX': ''})
        transport.respond(body={'product': {'id': 1}})

        api.Product.find(self.session, 1)
        self.assertEqual(('GET', '/api/2022-10/products/1', None, None), transport.last_request)
        self.assertEqual(250, api.config['RESTMOUNT_MAX_PER_PAGE'])

    def test_add_resource(self):
        class Shop(Resource):
            class Schema:
                id = fields.Integer(io="r")
                name = fields.String()

            class Meta:
                exclude_routes = ('create', 'destroy')

        api, transport = self.recording_api()
        bound = api.add_resource(Shop)

        self.assertIs(bound, api.Shop)
        self.assertIs(bound, api.resources['shop'])
        self.assertEqual('shops', bound.meta.path)
        self.assertEqual({'read', 'instances', 'count', 'update'}, set(bound.routes))
        self.assertIs(bound, api.add_resource(Shop))
        self.assertIs(bound, api.add_resource(bound))

    def test_add_resource_replaces_same_name(self):
        class Product(v2022_10.Product):
            class Schema:
                gift_card = fields.Boolean()

            class Meta:
                name = 'product'

        api = Api('2022-10')
        bound = api.add_resource(Product)

        self.assertIs(bound, api.Product)
        self.assertIn('gift_card', api.Product.schema.fields)
        self.assertIn('title', api.Product.schema.fields)

    def test_no_transport(self):
        api = Api('2022-10')

        with self.assertRaises(ConfigurationError):
            api.Product.find(self.session, 1)

    def test_unmounted_resource(self):
        with self.assertRaises(ConfigurationError):
            v2022_10.Product.find(self.session, 1)

    def test_session_required(self):
        with self.assertRaises(ConfigurationError):
            self.api.Product.find(None, 1)

    def test_error_mapping(self):
        api, transport = self.recording_api()
        transport.respond(404, {'errors': 'Not Found'})
        transport.respond(422, {'errors': {'title': ["can't be blank"]}})
        transport.respond(400, {'errors': {'product': 'Required parameter missing or invalid'}})
        transport.respond(429, {'errors': 'Exceeded 2 calls per second for api client.'}, {'Retry-After': '2.0'})
        transport.respond(500, {'error': 'Internal Server Error'})

        with self.assertRaises(NotFoundError) as cx:
            api.Product.find(self.session, 1)
        self.assertEqual(404, cx.exception.status)
        self.assertEqual('Not Found', cx.exception.errors)

        with self.assertRaises(ValidationError) as cx:
            api.Product.find(self.session, 1)
        self.assertEqual(422, cx.exception.status_code)
        self.assertEqual({'title': ["can't be blank"]}, cx.exception.errors)

        with self.assertRaises(ValidationError) as cx:
            api.Product.find(self.session, 1)
        self.assertEqual(400, cx.exception.status)

        with self.assertRaises(RateLimitError) as cx:
            api.Product.find(self.session, 1)
        self.assertEqual(2.0, cx.exception.retry_after)

        with self.assertRaises(ApiError) as cx:
            api.Product.find(self.session, 1)
        self.assertEqual(ApiError, type(cx.exception))
        self.assertEqual({'status': 500,
                          'message': 'Internal Server Error',
                          'errors': 'Internal Server Error'}, cx.exception.as_dict())

    def test_repr(self):
        self.assertEqual('<Api 2022-10>', repr(self.api))
        self.assertEqual('<Session test-shop.myshopify.com>', repr(self.session))
