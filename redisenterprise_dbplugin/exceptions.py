# -*- coding: utf-8 -*-

class RedisEnterprisePluginError(Exception):
    """Base Error class."""


class ValidationError(RedisEnterprisePluginError):
    """Base class for requests or configuration that can never succeed."""


class StatementError(ValidationError):
    """Creation statement is missing, malformed or incomplete."""


class ConfigurationError(ValidationError):
    """Plugin configuration is missing a field or combines options badly."""


class FeatureDisabledError(ValidationError):
    CUSTOM_ERROR_MESSAGE = "the ACL only feature has not been enabled for {}. You must specify a " \
                           "role name"

    def __init__(self, role_name):
        super(FeatureDisabledError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(role_name))
        self._role_name = role_name

    @property
    def role_name(self):
        return self._role_name


class NotFoundError(RedisEnterprisePluginError):
    CUSTOM_ERROR_MESSAGE = "unable to find {} {}"
    KIND = "item"

    def __init__(self, name):
        super(NotFoundError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(self.KIND, name))
        self._name = name

    @property
    def kind(self):
        return self.KIND

    @property
    def name(self):
        return self._name


class UserNotFoundError(NotFoundError):
    KIND = "user"


class RoleNotFoundError(NotFoundError):
    KIND = "role"


class ACLNotFoundError(NotFoundError):
    KIND = "acl"


class DatabaseNotFoundError(NotFoundError):
    KIND = "database"


class BindingError(RedisEnterprisePluginError):
    CUSTOM_ERROR_MESSAGE = "database {} has a problem binding role {}"

    def __init__(self, database, role):
        super(BindingError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(database, role))
        self._database = database
        self._role = role

    @property
    def database(self):
        return self._database

    @property
    def role(self):
        return self._role


class MissingBindingError(BindingError):
    CUSTOM_ERROR_MESSAGE = "database {} has no binding for role {}"


class MismatchedBindingError(BindingError):
    CUSTOM_ERROR_MESSAGE = "database {} has a different binding for role {}"


class TransportError(RedisEnterprisePluginError):
    """The cluster could not be reached or answered with something unusable."""


class HttpError(TransportError):
    CUSTOM_ERROR_MESSAGE = "{} {} returned status {}: {}"

    def __init__(self, method, path, status, body):
        super(HttpError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(method, path, status, body))
        self._method = method
        self._path = path
        self._status = status
        self._body = body

    @property
    def method(self):
        return self._method

    @property
    def path(self):
        return self._path

    @property
    def status(self):
        return self._status

    @property
    def body(self):
        return self._body

    def __eq__(self, other):
        if not isinstance(other, HttpError):
            return NotImplemented
        return (self.method, self.path, self.status, self.body) == \
               (other.method, other.path, other.status, other.body)

    def __hash__(self):
        return hash((self.method, self.path, self.status, self.body))


class RetryExhaustedError(RedisEnterprisePluginError):
    CUSTOM_ERROR_MESSAGE = "cannot update database {} roles_permissions - too many retries after " \
                           "conflicts (409) in {} attempts"

    def __init__(self, database_uid, attempts):
        super(RetryExhaustedError, self).__init__(
            self.CUSTOM_ERROR_MESSAGE.format(database_uid, attempts))
        self._database_uid = database_uid
        self._attempts = attempts

    @property
    def database_uid(self):
        return self._database_uid

    @property
    def attempts(self):
        return self._attempts


class ContextExpiredError(RedisEnterprisePluginError):
    """The caller's deadline passed or the caller cancelled the operation."""


class CompoundError(RedisEnterprisePluginError):
    """A primary failure plus the failure of the action that tried to compensate for it.

    Both causes are kept, in order, and both show up in the message.
    """

    def __init__(self, errors):
        self._errors = list(errors)
        super(CompoundError, self).__init__(self._render(self._errors))

    @staticmethod
    def _render(errors):
        points = "\n\t".join(f"* {error}" for error in errors)
        noun = "error" if len(errors) == 1 else "errors"
        return f"{len(errors)} {noun} occurred:\n\t{points}"

    @property
    def errors(self):
        return list(self._errors)

    @classmethod
    def join(cls, original, addition):
        """Joins addition onto original, flattening an original that is already compound."""
        if isinstance(original, CompoundError):
            return cls(original.errors + [addition])
        return cls([original, addition])


class NotInitializedError(RedisEnterprisePluginError):
    CUSTOM_ERROR_MESSAGE = "plugin has not been initialized"

    def __init__(self):
        super(NotInitializedError, self).__init__(self.CUSTOM_ERROR_MESSAGE)


class ConnectionVerificationError(RedisEnterprisePluginError):
    CUSTOM_ERROR_MESSAGE = "could not verify connection to cluster: {}"

    def __init__(self, error):
        super(ConnectionVerificationError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(error))
        self._error = error

    @property
    def error(self):
        return self._error


class SanitizedError(RedisEnterprisePluginError):
    """An error whose message has had secret values redacted.

    The original exception is deliberately not chained, as its message holds the secrets.
    """

    def __init__(self, message, original_type):
        super(SanitizedError, self).__init__(message)
        self._original_type = original_type

    @property
    def original_type(self):
        return self._original_type


class RotationError(RedisEnterprisePluginError):
    CUSTOM_ERROR_MESSAGE = "Secret {} rotation failed {}"

    def __init__(self, secret_id, error):
        super(RotationError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(secret_id, error))
        self._secret_id = secret_id
        self._error = error

    @property
    def secret_id(self):
        return self._secret_id

    @property
    def error(self):
        return self._error
