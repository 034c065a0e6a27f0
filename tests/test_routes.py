from datetime import datetime

from restmount import ItemRoute, Route, fields
from restmount.exceptions import ConfigurationError, InvalidStateError, MalformedResponse
from restmount.resource import Resource
from restmount.rest import v2022_10
from restmount.routes import default_routes
from tests import BaseTestCase


class RouteTestCase(BaseTestCase):

    def test_default_routes(self):
        self.assertEqual({'read', 'instances', 'count', 'create', 'update', 'destroy'},
                         {route.relation for route in default_routes()})

        Product = self.api.Product
        self.assertEqual('products/{id}', Product.routes['read'].rule_factory(Product))
        self.assertEqual('products', Product.routes['instances'].rule_factory(Product))
        self.assertEqual('products/count', Product.routes['count'].rule_factory(Product))
        self.assertEqual('DELETE', Product.routes['destroy'].method)
        self.assertTrue(Product.routes['instances'].paginated)
        self.assertFalse(Product.routes['count'].paginated)

    def test_path_factory(self):
        Product = self.api.Product
        self.assertEqual('/admin/api/2022-10/products/632910392.json',
                         Product.routes['read'].path_factory(Product, {'id': 632910392}))
        self.assertEqual('/admin/api/2022-10/products.json',
                         Product.routes['instances'].path_factory(Product, {}))

    def test_nested_path_and_rule_overrides(self):
        Variant = self.api.Variant

        self.assertEqual(['product_id'], Variant.routes['instances'].placeholders(Variant))
        self.assertEqual(['product_id', 'id'], Variant.routes['destroy'].placeholders(Variant))
        self.assertEqual('/admin/api/2022-10/variants/808950810.json',
                         Variant.routes['read'].path_factory(Variant, {'id': 808950810}))
        self.assertEqual('/admin/api/2022-10/variants/808950810.json',
                         Variant.routes['update'].path_factory(Variant, {'id': 808950810}))
        self.assertEqual('/admin/api/2022-10/products/632910392/variants/808950810.json',
                         Variant.routes['destroy'].path_factory(Variant, {'id': 808950810,
                                                                          'product_id': 632910392}))
        self.assertTrue(Variant.routes['read'].requires_id(Variant))
        self.assertFalse(Variant.routes['count'].requires_id(Variant))

    def test_missing_placeholder(self):
        api, transport = self.recording_api()

        with self.assertRaises(ConfigurationError):
            api.Variant.all(self.session)

        with self.assertRaises(ConfigurationError):
            api.Variant.count(self.session, product_id='')

        with self.assertRaises(ConfigurationError):
            api.Variant(self.session, id=1, title='Red').delete()

        self.assertEqual([], transport.requests)

    def test_placeholders_removed_from_query(self):
        api, transport = self.recording_api()
        transport.respond(body={'variants': []})

        api.Variant.all(self.session, product_id=632910392, limit=10)
        self.assertEqual(('GET', '/admin/api/2022-10/products/632910392/variants.json', {'limit': 10}, None),
                         transport.last_request)

    def test_query_encoding(self):
        api, transport = self.recording_api()
        transport.respond(body={'count': 0})

        api.Product.count(self.session,
                          published_status='published',
                          created_at_min=datetime(2022, 10, 1, 12, 0),
                          ids=[1, 2, 3],
                          gift_card=False,
                          vendor=None)

        self.assertEqual({'published_status': 'published',
                          'created_at_min': '2022-10-01T12:00:00',
                          'ids': '1,2,3',
                          'gift_card': 'false'}, transport.last_request[2])

    def test_class_route(self):
        api, transport = self.recording_api()
        transport.respond(body={'customers': [{'id': 207119551, 'email': 'bob.norman@mail.example.com'}]})

        customers = api.Customer.search(self.session, query='email:bob.norman@mail.example.com')

        self.assertEqual(('GET', '/admin/api/2022-10/customers/search.json',
                          {'query': 'email:bob.norman@mail.example.com'}, None), transport.last_request)
        self.assertEqual(1, len(customers))
        self.assertIsInstance(customers[0], api.Customer)
        self.assertEqual('bob.norman@mail.example.com', customers[0].email)
        self.assertEqual('search', api.Customer.search.__name__)

    def test_item_routes(self):
        api, transport = self.recording_api()
        transport.respond(body={'order': {'id': 450789469,
                                          'closed_at': '2022-10-03T13:05:01-04:00',
                                          'name': '#1001'}})
        transport.respond(body={'orders': [{'id': 450789469}, {'id': 450789470}]})

        order = api.Order.from_server(self.session, {'id': 450789469, 'closed_at': None})
        self.assertIs(order, order.close())

        self.assertEqual(('POST', '/admin/api/2022-10/orders/450789469/close.json', None, None),
                         transport.last_request)
        self.assertEqual(2022, order.closed_at.year)
        self.assertEqual('#1001', order.name)
        self.assertFalse(order.is_dirty)

        customer = api.Customer.from_server(self.session, {'id': 207119551})
        orders = customer.orders(status='any')

        self.assertEqual(('GET', '/admin/api/2022-10/customers/207119551/orders.json', {'status': 'any'}, None),
                         transport.last_request)
        self.assertEqual([450789469, 450789470], [o.id for o in orders])
        self.assertIsInstance(orders[0], api.Order)

    def test_item_route_body(self):
        api, transport = self.recording_api()
        transport.respond(body={'order': {'id': 450789469, 'cancel_reason': 'customer'}})

        order = api.Order.from_server(self.session, {'id': 450789469})
        order.cancel(body={'reason': 'customer', 'email': True})

        self.assertEqual(('POST', '/admin/api/2022-10/orders/450789469/cancel.json', None,
                          {'reason': 'customer', 'email': True}), transport.last_request)
        self.assertEqual('customer', order.cancel_reason)

    def test_custom_route_without_envelope(self):
        api, transport = self.recording_api()
        transport.respond(body={'customer': {}})
        transport.respond(body={})
        transport.respond(body=None)

        with self.assertRaises(MalformedResponse) as cx:
            api.Customer.search(self.session, query='country:Canada')
        self.assertEqual((200, {'customer': {}}), (cx.exception.status, cx.exception.body))

        order = api.Order.from_server(self.session, {'id': 450789469, 'note': 'Gift'})
        for _ in range(2):
            with self.assertRaises(MalformedResponse):
                order.close()

        self.assertEqual({'id': 450789469, 'note': 'Gift'}, order.attributes)
        self.assertEqual(3, len(transport.requests))

    def test_custom_route_item_without_id(self):
        api, transport = self.recording_api()
        transport.respond(body={'customers': [{'email': 'bob.norman@mail.example.com'}]})

        with self.assertRaises(MalformedResponse) as cx:
            api.Customer.search(self.session, query='email:bob.norman@mail.example.com')
        self.assertEqual(200, cx.exception.status)

    def test_default_rule_keeps_underscores(self):
        class Customer(v2022_10.Customer):
            class Meta:
                name = 'customer'

            @ItemRoute.POST
            def send_invite(self, response):
                return self.unwrap(response, 'customer_invite', dict)

        api, transport = self.recording_api()
        api.add_resource(Customer)
        transport.respond(status=201, body={'customer_invite': {'to': 'bob.norman@mail.example.com'}})

        customer = api.Customer.from_server(self.session, {'id': 207119551})
        invite = customer.send_invite(body={'customer_invite': {}})

        self.assertEqual('customers/{id}/send_invite', api.Customer.routes['send_invite'].rule_factory(api.Customer))
        self.assertEqual(('POST', '/admin/api/2022-10/customers/207119551/send_invite.json', None,
                          {'customer_invite': {}}), transport.last_request)
        self.assertEqual({'to': 'bob.norman@mail.example.com'}, invite)

    def test_item_route_on_deleted_item(self):
        api, transport = self.recording_api()
        transport.respond(body={})

        order = api.Order.from_server(self.session, {'id': 450789469})
        order.delete()

        with self.assertRaises(InvalidStateError):
            order.close()

        self.assertEqual(1, len(transport.requests))

    def test_rule_override_of_custom_route(self):
        class Customer(v2022_10.Customer):
            class Meta:
                name = 'customer'
                rules = {'search': 'customers/lookup'}

        api, transport = self.recording_api()
        api.add_resource(Customer)
        transport.respond(body={'customers': []})

        self.assertEqual([], api.Customer.search(self.session, query='country:Canada'))
        self.assertEqual('/admin/api/2022-10/customers/lookup.json', transport.last_request[1])

    def test_route_decorators(self):
        class Invoice(Resource):
            class Schema:
                id = fields.Integer(io="r")
                paid = fields.Boolean()

            @ItemRoute.POST
            def mark_paid(self, response):
                self.update_from_server(self.unwrap(response, 'invoice', dict), response)
                return self

            @Route.GET(rel='overdue_invoices')
            def overdue(cls, session, response):
                return [cls.from_server(session, data, response) for data in cls.unwrap(response, 'invoices', list)]

        api, transport = self.recording_api()
        Invoice = api.add_resource(Invoice)

        self.assertEqual('invoices/{id}/mark_paid', Invoice.routes['mark_paid'].rule_factory(Invoice))
        self.assertEqual('invoices/overdue', Invoice.routes['overdue_invoices'].rule_factory(Invoice))

        transport.respond(body={'invoices': [{'id': 1, 'paid': False}]})
        invoices = Invoice.overdue(self.session)

        transport.respond(body={'invoice': {'id': 1, 'paid': True}})
        self.assertTrue(invoices[0].mark_paid().paid)
        self.assertEqual(('POST', '/admin/api/2022-10/invoices/1/mark_paid.json', None, None),
                         transport.last_request)

    def test_excluded_routes(self):
        class Report(Resource):
            class Meta:
                exclude_routes = ('create', 'update', 'destroy')

        api, transport = self.recording_api()
        Report = api.add_resource(Report)

        with self.assertRaises(ConfigurationError):
            Report(self.session, title='Sales').save()

        with self.assertRaises(ConfigurationError):
            Report.delete(self.session, 1)

        self.assertEqual([], transport.requests)

    def test_route_repr(self):
        self.assertEqual("Route(GET '/{id}')", repr(self.api.Product.routes['read']))
