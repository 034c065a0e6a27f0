from .utils import expand_rule, placeholders

HTTP_METHODS = ('GET', 'PUT', 'POST', 'PATCH', 'DELETE')


class Route(object):
    """
    Binds one operation of a resource to an HTTP method and a rule template.

    Routes are not bound to a specific resource; the path they produce depends on the resource they are used with.
    A rule that is empty or starts with ``/`` is relative to the resource's collection path (``Meta.path``); any
    other rule is relative to the API prefix. Rules may contain ``{name}`` placeholders, ``{id}`` being the
    primary key.

    Routes declared on a resource class with one of the method decorators become custom operations. The decorated
    function is called with the resource class, the session and the :class:`transport.Response` and returns the
    result of the operation. A default rule is the attribute name, e.g. ``/send_invite``::

        class Customer(Resource):
            @Route.GET('/search')
            def search(cls, session, response):
                return [cls.from_server(session, data, response)
                        for data in cls.unwrap(response, 'customers', list)]

        customers = api.Customer.search(session, query='email:bob@example.com')

    .. decoratormethod:: METHOD(rule=None, rel=None, paginated=False)

        A decorator for declaring a custom operation with the *METHOD* method. Can be used with or without
        arguments. Defined for the *GET*, *PUT*, *POST*, *PATCH* and *DELETE* methods.

    :param str method: a HTTP request method name (upper case)
    :param callable view_func: response handler
    :param rule: rule template or callable returning a rule template when given the resource
    :param str attribute: attribute name on the resource, used as the default relation
    :param str rel: relation; keys the route in ``Resource.routes``
    :param bool paginated: whether responses carry pagination links
    """

    def __init__(self, method=None, view_func=None, rule=None, attribute=None, rel=None, paginated=False):
        self.method = method
        self.view_func = view_func
        self.rule = rule
        self.attribute = attribute
        self.rel = rel
        self.paginated = paginated

    @property
    def relation(self):
        if self.rel:
            return self.rel
        return self.attribute

    def copy(self, rule=None):
        return self.__class__(self.method,
                              self.view_func,
                              rule=self.rule if rule is None else rule,
                              attribute=self.attribute,
                              rel=self.rel,
                              paginated=self.paginated)

    def rule_factory(self, resource):
        """
        Returns the rule template for this route and resource, relative to the API prefix.

        :param restmount.Resource resource:
        """
        rule = self.rule

        if rule is None:
            rule = '/' + self.attribute
        elif callable(rule):
            rule = rule(resource)

        if not rule or rule.startswith('/'):
            return ''.join((resource.meta.path, rule))
        return rule

    def placeholders(self, resource):
        return placeholders(self.rule_factory(resource))

    def requires_id(self, resource):
        return 'id' in self.placeholders(resource)

    def path_factory(self, resource, values):
        """
        Returns the absolute request path for this route.

        :param restmount.Resource resource:
        :param dict values: placeholder values
        :raises ConfigurationError: if a placeholder has no value
        """
        rule = expand_rule(self.rule_factory(resource), values, resource)
        return ''.join((resource.route_prefix or '', '/', rule, resource.path_suffix))

    def __get__(self, obj, owner):
        if self.view_func is None:
            return self

        resource = owner if obj is None else obj.__class__

        def operation(session, body=None, **params):
            route = resource.routes.get(self.relation, self)
            response = resource.send(route, session, params, body=body)
            return self.view_func(resource, session, response)

        operation.__name__ = self.attribute or self.relation
        operation.__doc__ = self.view_func.__doc__
        return operation

    def __repr__(self):
        return '{}({} {})'.format(self.__class__.__name__, self.method, repr(self.rule))


class ItemRoute(Route):
    """
    A route for operations on a single item, such as closing an order. It is a simple extension over
    :class:`Route` with the following adjustments:

    - :meth:`rule_factory` prefixes relative rules with ``/{id}``.
    - The operation is called on an instance, using the instance's session and attributes to fill placeholders,
      and the decorated function receives the instance instead of the class::

        class Order(Resource):
            @ItemRoute.POST('/close')
            def close(self, response):
                self.update_from_server(self.unwrap(response, self.meta.name, dict), response)
                return self

        order.close()
    """

    def rule_factory(self, resource):
        rule = self.rule

        if rule is None:
            rule = '/' + self.attribute
        elif callable(rule):
            rule = rule(resource)

        if not rule or rule.startswith('/'):
            return ''.join((resource.meta.path, '/{id}', rule))
        return rule

    def __get__(self, obj, owner):
        if obj is None or self.view_func is None:
            return self

        def operation(body=None, **params):
            obj.check_state(self.relation)
            route = obj.routes.get(self.relation, self)
            response = obj.send_item(route, params, body=body)
            return self.view_func(obj, response)

        operation.__name__ = self.attribute or self.relation
        operation.__doc__ = self.view_func.__doc__
        return operation


def _route_decorator(method):
    @classmethod
    def decorator(cls, *args, **kwargs):
        if len(args) == 1 and len(kwargs) == 0 and callable(args[0]):
            return cls(method, args[0])
        else:
            return lambda f: cls(method, f, *args, **kwargs)

    decorator.__name__ = method
    return decorator


for method in HTTP_METHODS:
    setattr(Route, method, _route_decorator(method))


def default_routes():
    """
    The operations every resource supports unless excluded with ``Meta.exclude_routes``.
    """
    return (
        Route('GET', rule='/{id}', rel='read'),
        Route('GET', rule='', rel='instances', paginated=True),
        Route('GET', rule='/count', rel='count'),
        Route('POST', rule='', rel='create'),
        Route('PUT', rule='/{id}', rel='update'),
        Route('DELETE', rule='/{id}', rel='destroy'),
    )
