# -*- coding: utf-8 -*-
"""An in memory stand in for ClusterClient holding users, roles, ACLs and databases.

Failures can be injected per operation through fail_on, either as an exception instance
raised every time or a list of exceptions raised on successive calls.
"""

import threading

from redisenterprise_dbplugin.exceptions import UserNotFoundError, RoleNotFoundError, \
    ACLNotFoundError, DatabaseNotFoundError, HttpError
from redisenterprise_dbplugin.models import User, Role, ACL, Database, Cluster


class FakeClusterClient:

    def __init__(self):
        self.users = {}
        self.roles = {}
        self.acls = {}
        self.databases = {}
        self.fail_on = {}
        self.calls = []
        self.closed = False
        self.initialised_with = None
        self._next_uid = 100
        self._uid_lock = threading.Lock()
        # widens the window between reading and writing roles_permissions
        self.read_delay = None

    def _uid(self):
        with self._uid_lock:
            self._next_uid += 1
            return self._next_uid

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        failure = self.fail_on.get(name)
        if isinstance(failure, list):
            if failure:
                raise failure.pop(0)
        elif failure is not None:
            raise failure

    def add_role(self, name, management="db_member"):
        role = Role(uid=self._uid(), name=name, management=management)
        self.roles[role.uid] = role
        return role

    def add_acl(self, name):
        acl = ACL(uid=self._uid(), name=name)
        self.acls[acl.uid] = acl
        return acl

    def add_database(self, name, role_permissions=None):
        database = Database(uid=self._uid(), name=name, role_permissions=list(role_permissions or []))
        self.databases[database.uid] = database
        return database

    def add_user(self, name, email="", role_uids=None):
        user = User(uid=self._uid(), name=name, email=email, role_uids=list(role_uids or []))
        self.users[user.uid] = user
        return user

    def role_named(self, name):
        return next((r for r in self.roles.values() if r.name == name), None)

    def user_named(self, name):
        return next((u for u in self.users.values() if u.name == name), None)

    def database_named(self, name):
        return next((d for d in self.databases.values() if d.name == name), None)

    def initialise(self, url, username, password):
        self.initialised_with = (url, username, password)

    def close(self):
        self.closed = True

    def get_cluster(self, ctx):
        self._call("get_cluster")
        return Cluster(name="fake.cluster.local")

    def list_users(self, ctx):
        self._call("list_users")
        return list(self.users.values())

    def find_user_by_name(self, ctx, name):
        self._call("find_user_by_name", name)
        for user in self.users.values():
            if user.name == name:
                return user
        for user in self.users.values():
            if user.email == name:
                return user
        raise UserNotFoundError(name)

    def create_user(self, ctx, create):
        self._call("create_user", create.name)
        for role_uid in create.role_uids:
            if role_uid not in self.roles:
                raise HttpError("POST", "/v1/users", 400, "unknown role")
        user = User(uid=self._uid(), name=create.name, email=create.email, role_uids=list(create.role_uids))
        self.users[user.uid] = user
        return user

    def update_user_password(self, ctx, uid, update):
        self._call("update_user_password", uid, update.password)
        if uid not in self.users:
            raise HttpError("PUT", f"/v1/users/{uid}", 404, "not found")
        self.users[uid].password_issue_date = "2026-10-19T10:00:00Z"

    def delete_user(self, ctx, uid):
        self._call("delete_user", uid)
        if self.users.pop(uid, None) is None:
            raise HttpError("DELETE", f"/v1/users/{uid}", 404, "not found")

    def list_roles(self, ctx):
        self._call("list_roles")
        return list(self.roles.values())

    def find_role_by_name(self, ctx, name):
        self._call("find_role_by_name", name)
        role = self.role_named(name)
        if role is None:
            raise RoleNotFoundError(name)
        return role

    def create_role(self, ctx, create):
        self._call("create_role", create.name, create.management)
        if self.role_named(create.name) is not None:
            raise HttpError("POST", "/v1/roles", 409, "role name already exists")
        return self.add_role(create.name, create.management)

    def delete_role(self, ctx, uid):
        self._call("delete_role", uid)
        if self.roles.pop(uid, None) is None:
            raise HttpError("DELETE", f"/v1/roles/{uid}", 404, "not found")
        # the cluster removes bindings of a deleted role
        for database in self.databases.values():
            database.role_permissions = [p for p in database.role_permissions if p.role_uid != uid]

    def list_acls(self, ctx):
        self._call("list_acls")
        return list(self.acls.values())

    def find_acl_by_name(self, ctx, name):
        self._call("find_acl_by_name", name)
        acl = next((a for a in self.acls.values() if a.name == name), None)
        if acl is None:
            raise ACLNotFoundError(name)
        return acl

    def list_databases(self, ctx):
        self._call("list_databases")
        return list(self.databases.values())

    def get_database(self, ctx, uid):
        self._call("get_database", uid)
        return self._snapshot(self.databases[uid])

    def find_database_by_name(self, ctx, name):
        self._call("find_database_by_name", name)
        database = self.database_named(name)
        if database is None:
            raise DatabaseNotFoundError(name)
        snapshot = self._snapshot(database)
        if self.read_delay is not None:
            self.read_delay()
        return snapshot

    @staticmethod
    def _snapshot(database):
        return Database(uid=database.uid, name=database.name, role_permissions=list(database.role_permissions))

    def update_database(self, ctx, uid, update):
        self._call("update_database", uid, list(update.role_permissions))
        self.databases[uid].role_permissions = list(update.role_permissions)

    def update_database_with_retry(self, ctx, uid, update):
        self._call("update_database_with_retry", uid, list(update.role_permissions))
        self.databases[uid].role_permissions = list(update.role_permissions)
