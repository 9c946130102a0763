# -*- coding: utf-8 -*-
"""The contract a secrets host expects from a database credential plugin.

The host calls initialize once with the plugin configuration and then new_user,
update_user and delete_user, possibly concurrently, for the accounts it manages.
Errors are passed back through ErrorSanitizerMiddleware, which strips secret values
out of the messages before the host can log or display them.
"""

import logging
import secrets
import string
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from .exceptions import RedisEnterprisePluginError, SanitizedError


@dataclass
class UsernameMetadata:
    display_name: str
    role_name: str


@dataclass
class Statements:
    commands: List[str] = field(default_factory=list)


@dataclass
class InitializeRequest:
    config: dict
    verify_connection: bool = False


@dataclass
class InitializeResponse:
    config: dict


@dataclass
class NewUserRequest:
    username_config: UsernameMetadata
    statements: Statements
    password: str = field(repr=False)


@dataclass
class NewUserResponse:
    username: str


@dataclass
class ChangePassword:
    new_password: str = field(repr=False)
    statements: Statements = field(default_factory=Statements)


@dataclass
class UpdateUserRequest:
    username: str
    password: Optional[ChangePassword] = None


@dataclass
class UpdateUserResponse:
    pass


@dataclass
class DeleteUserRequest:
    username: str
    statements: Statements = field(default_factory=Statements)


@dataclass
class DeleteUserResponse:
    pass


class Database(ABC):
    """Abstract Base Class for a database credential plugin.

    Every lifecycle call takes an optional Context as its last argument; without one
    the call runs with no deadline.
    """

    @abstractmethod
    def initialize(self, req, ctx=None):
        """Validates and stores the configuration, returns an InitializeResponse."""

    @abstractmethod
    def new_user(self, req, ctx=None):
        """Creates an account, returns a NewUserResponse holding its username."""

    @abstractmethod
    def update_user(self, req, ctx=None):
        """Changes an account's password, returns an UpdateUserResponse."""

    @abstractmethod
    def delete_user(self, req, ctx=None):
        """Removes an account, returns a DeleteUserResponse."""

    @abstractmethod
    def type(self):
        """Name the host registers the plugin under."""

    @abstractmethod
    def close(self):
        """Releases any held resources."""


SANITIZED_EXCEPTIONS = (RedisEnterprisePluginError, requests.RequestException)


class ErrorSanitizerMiddleware(Database):
    """Wraps a plugin so no error it raises carries a secret value in its message.

    secrets_fn is called at the time of each failure and returns a map of secret value
    to the placeholder that replaces it, e.g. {"s3cr3t": "[password]"}.
    """

    def __init__(self, database, secrets_fn):
        self._database = database
        self._secrets_fn = secrets_fn

    @property
    def database(self):
        return self._database

    def _sanitize(self, error):
        message = str(error)
        for secret, placeholder in self._secrets_fn().items():
            if secret:
                message = message.replace(secret, placeholder)
        return SanitizedError(message, type(error).__name__)

    def _call(self, method, *args):
        try:
            return method(*args)
        except SANITIZED_EXCEPTIONS as e:
            raise self._sanitize(e) from None

    def initialize(self, req, ctx=None):
        return self._call(self._database.initialize, req, ctx)

    def new_user(self, req, ctx=None):
        return self._call(self._database.new_user, req, ctx)

    def update_user(self, req, ctx=None):
        return self._call(self._database.update_user, req, ctx)

    def delete_user(self, req, ctx=None):
        return self._call(self._database.delete_user, req, ctx)

    def type(self):
        return self._database.type()

    def close(self):
        return self._call(self._database.close)


USERNAME_RANDOM_LENGTH = 20


def _truncate(value, length):
    return value[:length]


def generate_username(display_name, role_name, max_length=192):
    """Builds a unique username v-<display>-<role>-<random>-<epoch>.

    The default max_length of 192 leaves room for a "<database>-" prefix when the name
    is reused for a generated role, within the cluster's 256 character limit.
    """
    letters = string.ascii_letters + string.digits
    random_part = "".join(secrets.choice(letters) for _ in range(USERNAME_RANDOM_LENGTH))
    parts = ["v"]
    for part in [_truncate(display_name, 50), _truncate(role_name, 50)]:
        if part:
            parts.append(part)
    parts.append(random_part)
    parts.append(str(int(time.time())))
    username = "-".join(parts).lower()
    username = _truncate(username, max_length)
    logging.getLogger(__name__).debug(f"generated username {username}")
    return username
