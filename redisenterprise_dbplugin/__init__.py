# -*- coding: utf-8 -*-
"""redisenterprise_dbplugin

A credential plugin that provisions, rotates and revokes users on a Redis Enterprise
cluster through its REST API, binding them to roles and ACLs of one database.

"""

from __future__ import absolute_import

from redisenterprise_dbplugin.exceptions import RedisEnterprisePluginError, \
    ValidationError, \
    StatementError, \
    ConfigurationError, \
    FeatureDisabledError, \
    NotFoundError, \
    UserNotFoundError, \
    RoleNotFoundError, \
    ACLNotFoundError, \
    DatabaseNotFoundError, \
    BindingError, \
    MissingBindingError, \
    MismatchedBindingError, \
    TransportError, \
    HttpError, \
    RetryExhaustedError, \
    ContextExpiredError, \
    CompoundError, \
    NotInitializedError, \
    ConnectionVerificationError, \
    SanitizedError, \
    RotationError
from redisenterprise_dbplugin.context import Context
from redisenterprise_dbplugin.client import ClusterClient
from redisenterprise_dbplugin.config import PluginConfig
from redisenterprise_dbplugin.dbplugin import Database, \
    ErrorSanitizerMiddleware, \
    InitializeRequest, \
    InitializeResponse, \
    NewUserRequest, \
    NewUserResponse, \
    UpdateUserRequest, \
    UpdateUserResponse, \
    DeleteUserRequest, \
    DeleteUserResponse, \
    ChangePassword, \
    Statements, \
    UsernameMetadata, \
    generate_username
from redisenterprise_dbplugin.reconciler import BindingReconciler
from redisenterprise_dbplugin.plugin import RedisEnterpriseDB, new
from redisenterprise_dbplugin.rotation import RootCredentialRotator, RootRotationMeta
from ._version import __version__

__all__ = ["__version__",
           "RedisEnterprisePluginError",
           "ValidationError",
           "StatementError",
           "ConfigurationError",
           "FeatureDisabledError",
           "NotFoundError",
           "UserNotFoundError",
           "RoleNotFoundError",
           "ACLNotFoundError",
           "DatabaseNotFoundError",
           "BindingError",
           "MissingBindingError",
           "MismatchedBindingError",
           "TransportError",
           "HttpError",
           "RetryExhaustedError",
           "ContextExpiredError",
           "CompoundError",
           "NotInitializedError",
           "ConnectionVerificationError",
           "SanitizedError",
           "RotationError",
           "Context",
           "ClusterClient",
           "PluginConfig",
           "Database",
           "ErrorSanitizerMiddleware",
           "InitializeRequest",
           "InitializeResponse",
           "NewUserRequest",
           "NewUserResponse",
           "UpdateUserRequest",
           "UpdateUserResponse",
           "DeleteUserRequest",
           "DeleteUserResponse",
           "ChangePassword",
           "Statements",
           "UsernameMetadata",
           "generate_username",
           "BindingReconciler",
           "RedisEnterpriseDB",
           "new",
           "RootCredentialRotator",
           "RootRotationMeta"]
