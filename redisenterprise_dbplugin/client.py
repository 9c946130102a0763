# -*- coding: utf-8 -*-
"""Typed wrapper over the Redis Enterprise cluster REST API.

The API has no server side filtering, so every find_*_by_name call fetches the whole
collection and scans it. A missing item raises the matching NotFoundError subclass so
callers can tell "does not exist" apart from a failed request.
"""

import logging

import requests
from requests.adapters import HTTPAdapter

from .exceptions import HttpError, TransportError, UserNotFoundError, RoleNotFoundError, \
    ACLNotFoundError, DatabaseNotFoundError, RetryExhaustedError
from .models import User, Role, ACL, Database, Cluster

# seconds
DEFAULT_TIMEOUT = 60
UPDATE_ROLE_PERMISSIONS_RETRY_LIMIT = 30
UPDATE_ROLE_PERMISSIONS_RETRY_DELAY = 0.5


class ClusterClient:
    """Blocking client for one cluster, sharing a single pooled session across threads.

    Every operation takes a Context first; the context bounds the request timeout and
    stops the database update retry loop when it expires or is cancelled.
    """

    def __init__(self, timeout=DEFAULT_TIMEOUT, verify=False, pool_maxsize=100):
        self._url = None
        self._timeout = timeout
        self.retry_limit = UPDATE_ROLE_PERMISSIONS_RETRY_LIMIT
        self.retry_delay = UPDATE_ROLE_PERMISSIONS_RETRY_DELAY
        self.session = requests.Session()
        # clusters ship with self signed certificates
        self.session.verify = verify
        adapter = HTTPAdapter(pool_maxsize=pool_maxsize)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    def initialise(self, url, username, password):
        self._url = url.rstrip("/")
        self.session.auth = (username, password)

    def close(self):
        self.session.close()

    @property
    def url(self):
        return self._url

    def _request(self, ctx, method, path, body=None):
        """Performs one request and returns the decoded JSON body, or None if empty."""
        ctx.check()

        timeout = self._timeout
        remaining = ctx.remaining()
        if remaining is not None:
            timeout = min(timeout, remaining)

        headers = {"Accept": "application/json"}
        kwargs = {}
        if body is not None:
            headers["Content-Type"] = "application/json;charset=utf-8"
            kwargs["json"] = body

        logging.getLogger(__name__).debug(f"request {method} {path}")
        try:
            response = self.session.request(method, f"{self._url}{path}", headers=headers,
                                            timeout=timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"unable to perform request {method} {path}: {e}") from e

        if response.status_code != 200:
            raise HttpError(method, path, response.status_code, response.text.strip())

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"unable to decode response {method} {path}: {e}") from e

    def get_cluster(self, ctx):
        return Cluster.from_json(self._request(ctx, "GET", "/v1/cluster") or {})

    def list_users(self, ctx):
        return [User.from_json(u) for u in self._request(ctx, "GET", "/v1/users") or []]

    def get_user(self, ctx, uid):
        return User.from_json(self._request(ctx, "GET", f"/v1/users/{uid}"))

    def find_user_by_name(self, ctx, name):
        """Finds a user by exact name, falling back to email.

        Root users are often provisioned with only an email address, so a credential
        rotation for one of those arrives with the email as the username.
        """
        users = self.list_users(ctx)
        for user in users:
            if user.name == name:
                return user
        for user in users:
            if user.email == name:
                return user
        raise UserNotFoundError(name)

    def create_user(self, ctx, create):
        return User.from_json(self._request(ctx, "POST", "/v1/users", create.to_json()))

    def update_user_password(self, ctx, uid, update):
        self._request(ctx, "PUT", f"/v1/users/{uid}", update.to_json())

    def delete_user(self, ctx, uid):
        self._request(ctx, "DELETE", f"/v1/users/{uid}")

    def list_roles(self, ctx):
        return [Role.from_json(r) for r in self._request(ctx, "GET", "/v1/roles") or []]

    def find_role_by_name(self, ctx, name):
        for role in self.list_roles(ctx):
            if role.name == name:
                return role
        raise RoleNotFoundError(name)

    def create_role(self, ctx, create):
        return Role.from_json(self._request(ctx, "POST", "/v1/roles", create.to_json()))

    def delete_role(self, ctx, uid):
        self._request(ctx, "DELETE", f"/v1/roles/{uid}")

    def list_acls(self, ctx):
        return [ACL.from_json(a) for a in self._request(ctx, "GET", "/v1/redis_acls") or []]

    def find_acl_by_name(self, ctx, name):
        for acl in self.list_acls(ctx):
            if acl.name == name:
                return acl
        raise ACLNotFoundError(name)

    def list_databases(self, ctx):
        return [Database.from_json(d) for d in self._request(ctx, "GET", "/v1/bdbs") or []]

    def get_database(self, ctx, uid):
        return Database.from_json(self._request(ctx, "GET", f"/v1/bdbs/{uid}"))

    def find_database_by_name(self, ctx, name):
        for database in self.list_databases(ctx):
            if database.name == name:
                return database
        raise DatabaseNotFoundError(name)

    def update_database(self, ctx, uid, update):
        self._request(ctx, "PUT", f"/v1/bdbs/{uid}", update.to_json())

    def update_database_with_retry(self, ctx, uid, update):
        """Updates a database, retrying while the cluster answers 409 Conflict.

        A 409 means an earlier configuration change is still being applied. Any other
        error is raised straight away, as is a context that expires between attempts.
        """
        for attempt in range(self.retry_limit):
            try:
                self.update_database(ctx, uid, update)
                return
            except HttpError as e:
                if e.status != 409:
                    raise
                logging.getLogger(__name__).debug(
                    f"database {uid} busy, attempt {attempt + 1} of {self.retry_limit}")
            ctx.sleep(self.retry_delay)

        raise RetryExhaustedError(uid, self.retry_limit)
