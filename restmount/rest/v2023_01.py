from restmount import fields
from restmount.rest import v2022_10
from restmount.rest.v2022_10 import Product, Variant, Order


class Customer(v2022_10.Customer):
    """
    ``accepts_marketing`` is replaced by the marketing consent objects.
    """

    class Schema:
        email_marketing_consent = fields.Object(additional_properties=True, nullable=True)
        sms_marketing_consent = fields.Object(additional_properties=True, nullable=True)

    class Meta:
        name = 'customer'
        exclude_fields = ('accepts_marketing', 'accepts_marketing_updated_at')


RESOURCES = (Product, Variant, Customer, Order)
