from restmount import fields
from restmount.resource import Resource
from restmount.routes import Route, ItemRoute

_object = lambda **kwargs: fields.Object(additional_properties=True, **kwargs)


class Product(Resource):
    class Schema:
        id = fields.Integer(io="r")
        title = fields.String(nullable=True)
        body_html = fields.String(nullable=True)
        vendor = fields.String(nullable=True)
        product_type = fields.String(nullable=True)
        handle = fields.String(nullable=True)
        status = fields.String(enum=['active', 'archived', 'draft'])
        tags = fields.String(nullable=True)
        template_suffix = fields.String(nullable=True)
        published_scope = fields.String(enum=['web', 'global'])
        variants = fields.Array(_object())
        options = fields.Array(_object())
        images = fields.Array(_object())
        image = _object(nullable=True)
        published_at = fields.DateTimeString(nullable=True)
        created_at = fields.DateTimeString(io="r")
        updated_at = fields.DateTimeString(io="r")
        admin_graphql_api_id = fields.String(io="r")

    class Meta:
        name = 'product'
        required_fields = ('title',)
        read_only_fields = ('created_at', 'updated_at', 'admin_graphql_api_id')


class Variant(Resource):
    class Schema:
        id = fields.Integer(io="r")
        product_id = fields.Integer()
        title = fields.String(nullable=True)
        price = fields.String(nullable=True)
        compare_at_price = fields.String(nullable=True)
        sku = fields.String(nullable=True)
        barcode = fields.String(nullable=True)
        position = fields.PositiveInteger()
        option1 = fields.String(nullable=True)
        option2 = fields.String(nullable=True)
        option3 = fields.String(nullable=True)
        inventory_policy = fields.String(enum=['deny', 'continue'])
        inventory_management = fields.String(nullable=True)
        fulfillment_service = fields.String(nullable=True)
        taxable = fields.Boolean()
        requires_shipping = fields.Boolean()
        grams = fields.Integer(nullable=True)
        weight = fields.Number(nullable=True)
        weight_unit = fields.String(enum=['g', 'kg', 'oz', 'lb'])
        image_id = fields.Integer(nullable=True)
        inventory_item_id = fields.Integer(io="r")
        inventory_quantity = fields.Integer(io="r")
        created_at = fields.DateTimeString(io="r")
        updated_at = fields.DateTimeString(io="r")
        admin_graphql_api_id = fields.String(io="r")

    class Meta:
        name = 'variant'
        path = 'products/{product_id}/variants'
        read_only_fields = ('inventory_item_id', 'inventory_quantity', 'created_at', 'updated_at',
                            'admin_graphql_api_id')
        rules = {
            'read': 'variants/{id}',
            'update': 'variants/{id}',
        }


class Customer(Resource):
    """
    The customer's account state is not a field; it is available as ``customer.attributes['state']``.
    """

    class Schema:
        id = fields.Integer(io="r")
        email = fields.String(nullable=True)
        first_name = fields.String(nullable=True)
        last_name = fields.String(nullable=True)
        phone = fields.String(nullable=True)
        note = fields.String(nullable=True)
        tags = fields.String(nullable=True)
        accepts_marketing = fields.Boolean()
        accepts_marketing_updated_at = fields.DateTimeString(io="r", nullable=True)
        tax_exempt = fields.Boolean()
        verified_email = fields.Boolean()
        currency = fields.String(io="r")
        orders_count = fields.Integer(io="r")
        total_spent = fields.String(io="r")
        last_order_id = fields.Integer(io="r", nullable=True)
        addresses = fields.Array(_object())
        default_address = _object(io="r", nullable=True)
        created_at = fields.DateTimeString(io="r")
        updated_at = fields.DateTimeString(io="r")
        admin_graphql_api_id = fields.String(io="r")

    class Meta:
        name = 'customer'
        read_only_fields = ('state', 'currency', 'orders_count', 'total_spent', 'last_order_id', 'default_address',
                            'created_at', 'updated_at', 'admin_graphql_api_id')

    @Route.GET('/search')
    def search(cls, session, response):
        """
        Finds customers matching ``query``, e.g. ``api.Customer.search(session, query='country:Canada')``.
        """
        return [cls.from_server(session, data, response) for data in cls.unwrap(response, 'customers', list)]

    @ItemRoute.GET('/orders')
    def orders(self, response):
        """
        Returns the customer's orders.
        """
        order = self.api.resources['order']
        return [order.from_server(self.session, data, response) for data in self.unwrap(response, 'orders', list)]


class Order(Resource):
    class Schema:
        id = fields.Integer(io="r")
        email = fields.String(nullable=True)
        phone = fields.String(nullable=True)
        note = fields.String(nullable=True)
        tags = fields.String(nullable=True)
        buyer_accepts_marketing = fields.Boolean()
        currency = fields.String(nullable=True)
        line_items = fields.Array(_object())
        shipping_address = _object(nullable=True)
        billing_address = _object(nullable=True)
        customer = _object(nullable=True)
        name = fields.String(io="r")
        number = fields.Integer(io="r")
        order_number = fields.Integer(io="r")
        financial_status = fields.String(io="r", nullable=True)
        fulfillment_status = fields.String(io="r", nullable=True)
        total_price = fields.String(io="r")
        subtotal_price = fields.String(io="r")
        total_tax = fields.String(io="r")
        order_status_url = fields.Uri(io="r")
        cancel_reason = fields.String(io="r", nullable=True)
        cancelled_at = fields.DateTimeString(io="r", nullable=True)
        closed_at = fields.DateTimeString(io="r", nullable=True)
        processed_at = fields.DateTimeString(nullable=True)
        created_at = fields.DateTimeString(io="r")
        updated_at = fields.DateTimeString(io="r")
        admin_graphql_api_id = fields.String(io="r")

    class Meta:
        name = 'order'
        read_only_fields = ('name', 'number', 'order_number', 'financial_status', 'fulfillment_status',
                            'total_price', 'subtotal_price', 'total_tax', 'order_status_url', 'cancel_reason',
                            'cancelled_at', 'closed_at', 'created_at', 'updated_at', 'admin_graphql_api_id')

    @ItemRoute.POST('/close')
    def close(self, response):
        self.update_from_server(self.unwrap(response, self.meta.name, dict), response)
        return self

    @ItemRoute.POST('/open')
    def open(self, response):
        self.update_from_server(self.unwrap(response, self.meta.name, dict), response)
        return self

    @ItemRoute.POST('/cancel')
    def cancel(self, response):
        """
        Cancels the order. Pass ``body={'reason': 'customer'}`` or other options accepted by the API.
        """
        self.update_from_server(self.unwrap(response, self.meta.name, dict), response)
        return self


RESOURCES = (Product, Variant, Customer, Order)
