from werkzeug.http import HTTP_STATUS_CODES


class RestmountException(Exception):
    pass


class ConfigurationError(RestmountException):
    """
    Raised for problems that are the caller's or the resource author's fault and can be detected before a
    request is sent: unknown API versions, missing path placeholders, missing sessions or transports.
    """


class InvalidStateError(RestmountException):

    def __init__(self, item, operation):
        super(InvalidStateError, self).__init__(
            'Cannot {} {!r}: the item has been deleted'.format(operation, item))
        self.item = item
        self.operation = operation


class TransportError(RestmountException):
    """
    Raised by a :class:`transport.Transport` when no response could be obtained.
    """


class ApiError(RestmountException):
    """
    A response with a non-success status code.

    :param int status: HTTP status code, ``None`` for errors detected before sending a request
    :param body: decoded response body
    :param dict headers: response headers
    """

    def __init__(self, status=None, body=None, headers=None, message=None):
        self.status = status
        self.body = body
        self.headers = headers or {}
        super(ApiError, self).__init__(message or self._default_message())

    def _default_message(self):
        if self.status is None:
            return 'API error'
        return '{} {}'.format(self.status, HTTP_STATUS_CODES.get(self.status, 'Unknown Error'))

    @property
    def status_code(self):
        return self.status

    @property
    def errors(self):
        if isinstance(self.body, dict):
            return self.body.get('errors', self.body.get('error'))
        return None

    def as_dict(self):
        dct = {
            'status': self.status,
            'message': HTTP_STATUS_CODES.get(self.status, '') if self.status else str(self)
        }
        if self.errors is not None:
            dct['errors'] = self.errors
        return dct


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    """
    The submitted attributes or query were rejected, either by the server (400, 422) or, when
    ``status`` is ``None``, by the resource schema before the request was sent.

    :param schema_errors: list of :class:`jsonschema.ValidationError` for client-side failures
    """

    def __init__(self, status=None, body=None, headers=None, schema_errors=None, root=None):
        self.schema_errors = list(schema_errors or ())
        self.root = root
        super(ValidationError, self).__init__(status, body, headers)

    def _complete_path(self, error):
        path = tuple(error.absolute_path)
        if self.root is not None:
            return (self.root,) + path
        return path

    def _format_errors(self):
        for error in self.schema_errors:
            yield {
                'validationOf': {error.validator: error.validator_value},
                'path': self._complete_path(error),
                'message': error.message
            }

    def _default_message(self):
        if self.status is None:
            return 'Validation failed: {}'.format('; '.join(
                '{}: {}'.format('.'.join(str(p) for p in e['path']) or '<root>', e['message'])
                for e in self._format_errors()))
        return super(ValidationError, self)._default_message()

    @property
    def errors(self):
        if self.status is None:
            return list(self._format_errors())
        return super(ValidationError, self).errors


class RateLimitError(ApiError):

    @property
    def retry_after(self):
        for name, value in self.headers.items():
            if name.lower() == 'retry-after':
                try:
                    return float(value)
                except (TypeError, ValueError):
                    return None
        return None


class MalformedResponse(ApiError):
    """
    A success response that cannot be interpreted: missing envelope, missing primary key, or an invalid
    ``Link`` header.
    """
