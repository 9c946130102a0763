# -*- coding: utf-8 -*-

import logging
import threading

from ._version import __version__
from .client import ClusterClient
from .config import PluginConfig
from .context import Context
from .dbplugin import Database, ErrorSanitizerMiddleware, InitializeResponse, NewUserResponse, \
    UpdateUserResponse, DeleteUserResponse, generate_username as default_generate_username
from .exceptions import ConnectionVerificationError, NotInitializedError, TransportError, \
    NotFoundError, RedisEnterprisePluginError
from .models import Statement, UpdateUser
from .reconciler import BindingReconciler

REDIS_ENTERPRISE_TYPE_NAME = "redisenterprise"
PASSWORD_PLACEHOLDER = "[password]"


class RedisEnterpriseDB(Database):
    """Credential plugin managing users on a Redis Enterprise cluster through its REST API.

    There is no connection to hold open, only the pooled HTTP session inside the client.
    initialize produces an immutable PluginConfig and a BindingReconciler bound to it;
    every later call reads them through this instance.
    """

    def __init__(self, client=None, generate_username=None):
        """
        Args:
            client (ClusterClient, optional): Client for the cluster REST API.
            generate_username (callable, optional): (display_name, role_name) -> str.
        """
        self._client = client if client is not None else ClusterClient()
        self._generate_username = generate_username or default_generate_username
        # serializes every read-append-write of a database's roles_permissions
        self._role_permissions_lock = threading.Lock()
        self._config = None
        self._reconciler = None

    @property
    def config(self):
        return self._config

    @property
    def client(self):
        return self._client

    def secret_values(self):
        """Secret values in the configuration mapped to the text that replaces them."""
        if self._config is None:
            return {}
        return {self._config.password: PASSWORD_PLACEHOLDER}

    def _initialized(self):
        if self._reconciler is None:
            raise NotInitializedError()
        return self._reconciler

    def initialize(self, req, ctx=None):
        ctx = ctx or Context.background()
        logging.getLogger(__name__).info(f"initialising plugin version {__version__}")

        config = PluginConfig.from_mapping(req.config)
        # set before verifying so a failed verification is still redacted
        self._config = config
        self._reconciler = None
        self._client.initialise(config.url, config.username, config.password)

        if req.verify_connection:
            try:
                self._client.get_cluster(ctx)
                if config.has_database():
                    self._client.find_database_by_name(ctx, config.database)
            except (TransportError, NotFoundError) as e:
                raise ConnectionVerificationError(e) from e

        self._reconciler = BindingReconciler(self._client, config, self._role_permissions_lock)
        return InitializeResponse(config=req.config)

    def new_user(self, req, ctx=None):
        """Creates a user from a creation statement of the form

        {"role": "role_name"}   an existing role, bound to an ACL in the database if one is
                                configured
        {"acl": "acl_name"}     an existing ACL; needs a database and the acl_only feature
        """
        ctx = ctx or Context.background()
        reconciler = self._initialized()
        role_name = req.username_config.role_name
        logging.getLogger(__name__).debug(
            f"new user display {req.username_config.display_name} role {role_name} "
            f"statements {req.statements.commands}")

        statement = Statement.parse(req.statements.commands, role_name)
        username = self._generate_username(req.username_config.display_name, role_name)

        reconciler.create_user(ctx, statement, username, req.password, role_name=role_name)
        return NewUserResponse(username=username)

    def update_user(self, req, ctx=None):
        ctx = ctx or Context.background()
        self._initialized()
        if req.password is None:
            return UpdateUserResponse()

        try:
            user = self._client.find_user_by_name(ctx, req.username)
        except RedisEnterprisePluginError as e:
            raise RedisEnterprisePluginError(f"cannot find user {req.username}: {e}") from e

        logging.getLogger(__name__).debug(f"change password user {req.username} ({user.uid})")

        try:
            self._client.update_user_password(ctx, user.uid, UpdateUser(password=req.password.new_password))
        except RedisEnterprisePluginError as e:
            raise RedisEnterprisePluginError(f"cannot change user password: {e}") from e
        return UpdateUserResponse()

    def delete_user(self, req, ctx=None):
        ctx = ctx or Context.background()
        self._initialized().delete_user(ctx, req.username)
        return DeleteUserResponse()

    def type(self):
        return REDIS_ENTERPRISE_TYPE_NAME

    def close(self):
        self._client.close()


def new():
    """Builds the plugin as the host should see it, with secrets redacted from errors."""
    db = RedisEnterpriseDB()
    return ErrorSanitizerMiddleware(db, db.secret_values)
