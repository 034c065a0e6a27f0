class Session(object):
    """
    An authenticated context for one shop.

    Resources only read sessions and hand them to the transport; how access tokens are obtained and stored is up
    to the application. Any object with ``shop`` and ``access_token`` attributes can be used instead.

    :param str shop: shop host, e.g. ``example.myshopify.com``
    :param str access_token: API access token
    :param str scope: optional comma-separated access scopes
    """

    def __init__(self, shop, access_token, scope=None):
        self.shop = shop
        self.access_token = access_token
        self.scope = scope

    def __repr__(self):
        return '<Session {}>'.format(self.shop)
