# -*- coding: utf-8 -*-
"""
Maps a creation statement onto the cluster's role, ACL and permission binding graph.

Three creation strategies, picked by what the statement names:

role only     - The named role must exist. With a database configured it must also be
                bound to some ACL in that database.
role and acl  - As role only, and the role's binding in the database must be to exactly
                the named ACL. A pre-existing role is never rebound, since other holders of
                that role would silently gain the new ACL.
acl only      - Needs the acl_only feature. A role named <database>-<username> is
                generated, bound to the ACL in the database and deleted together with the
                user it was generated for.

Any failure after a role has been generated deletes that role again. If the delete fails
too, both errors are raised together in a CompoundError.

Reading the database's roles_permissions, appending to it and writing it back is not
atomic on the cluster. A lock shared by every request of one plugin instance serializes
that sequence, which stops two concurrent acl only creations through this instance from
overwriting each other's binding. It does nothing about other writers to the same
database; the 409 retry in the client is the only defence there. If the REST API ever
offers an optimistic concurrency token for bdb updates that would be the better fix.
"""

import logging

from .context import Context
from .exceptions import FeatureDisabledError, MissingBindingError, MismatchedBindingError, \
    StatementError, UserNotFoundError, RoleNotFoundError, CompoundError
from .models import CreateRole, CreateUser, UpdateDatabase, RolePermission, \
    DB_MEMBER_MANAGEMENT, REGULAR_AUTH_METHOD


class BindingReconciler:

    def __init__(self, client, config, role_permissions_lock):
        """
        Args:
            client (ClusterClient): Performs the remote calls.
            config (PluginConfig): The initialized plugin configuration.
            role_permissions_lock (threading.Lock): Guards the read-append-write of the
                configured database's roles_permissions.
        """
        self._client = client
        self._config = config
        self._role_permissions_lock = role_permissions_lock

    @property
    def config(self):
        return self._config

    def generated_role_name(self, username):
        return f"{self._config.database}-{username}"

    def create_user(self, ctx, statement, username, password, role_name=""):
        """Resolves or generates the role for statement and creates the user in it.

        Args:
            ctx (Context): Deadline for the remote calls.
            statement (Statement): The validated creation statement.
            username (str): The already generated account name.
            password (str): Password for the new account.
            role_name (str): The host's role name, only used in error messages.

        Returns:
            User: The created user.
        """
        if not statement.has_role() and statement.has_acl() and not self._config.supports_acl_only():
            raise FeatureDisabledError(role_name)

        if statement.has_acl() and not self._config.has_database():
            raise StatementError(
                f"ACL cannot be used when the database has not been specified for {role_name}")

        if statement.has_role():
            role = self.resolve_role(ctx, statement)
            return self._client.create_user(ctx, self._new_user(username, password, role))

        role = self.generate_role(ctx, statement.acl, self.generated_role_name(username))
        try:
            return self._client.create_user(ctx, self._new_user(username, password, role))
        except Exception as e:
            self._roll_back_generated_role(role, e)
            raise

    @staticmethod
    def _new_user(username, password, role):
        return CreateUser(
            name=username,
            password=password,
            role_uids=[role.uid],
            email_alerts=False,
            auth_method=REGULAR_AUTH_METHOD,
        )

    def resolve_role(self, ctx, statement):
        """Finds the statement's role and, with a database configured, checks its binding."""
        role = self._client.find_role_by_name(ctx, statement.role)

        if not self._config.has_database():
            return role

        database = self._client.find_database_by_name(ctx, self._config.database)
        permission = database.find_permission_for_role(role.uid)

        # an unbound role would give the user no access to this database, or pick up
        # whatever ACL is bound to it later
        if permission is None:
            raise MissingBindingError(self._config.database, statement.role)

        if statement.has_acl():
            acl = self._client.find_acl_by_name(ctx, statement.acl)
            if acl.uid != permission.acl_uid:
                raise MismatchedBindingError(self._config.database, statement.role)

        return role

    def generate_role(self, ctx, acl_name, role_name, management=DB_MEMBER_MANAGEMENT):
        """Creates role_name and binds it to acl_name in the configured database.

        Returns:
            Role: The generated role.
        """
        with self._role_permissions_lock:
            acl = self._client.find_acl_by_name(ctx, acl_name)

            role = self._client.create_role(ctx, CreateRole(name=role_name, management=management))
            logging.getLogger(__name__).info(f"generated role {role.name} ({role.uid}) for acl {acl_name}")

            try:
                database = self._client.find_database_by_name(ctx, self._config.database)
                permissions = database.role_permissions + [
                    RolePermission(role_uid=role.uid, acl_uid=acl.uid)]
                self._client.update_database_with_retry(
                    ctx, database.uid, UpdateDatabase(role_permissions=permissions))
            except Exception as e:
                self._roll_back_generated_role(role, e)
                raise

            return role

    def _roll_back_generated_role(self, role, error):
        """Deletes a generated role after error; raises CompoundError if that fails too.

        Returns normally when the rollback worked so the caller re-raises error itself.
        """
        logging.getLogger(__name__).info(f"rolling back generated role {role.name} ({role.uid})")
        try:
            # the caller's context may be the reason for the failure
            # the cluster drops any bindings for a deleted role
            self._client.delete_role(Context.background(), role.uid)
        except Exception as rollback_error:
            logging.getLogger(__name__).exception(f"While deleting generated role {role.name}")
            raise CompoundError.join(error, rollback_error) from error

    def delete_user(self, ctx, username):
        """Deletes username and any role generated for it. A missing user is not an error."""
        self._find_and_delete_user(ctx, username)

        if self._config.supports_acl_only():
            self._find_and_delete_generated_role(ctx, username)

    def _find_and_delete_user(self, ctx, username):
        try:
            user = self._client.find_user_by_name(ctx, username)
        except UserNotFoundError:
            logging.getLogger(__name__).info(f"user {username} already deleted")
            return

        logging.getLogger(__name__).debug(f"delete user {username} ({user.uid})")
        self._client.delete_user(ctx, user.uid)

    def _find_and_delete_generated_role(self, ctx, username):
        # A role with the generated name is assumed to be ours, nothing else creates
        # names of this form.
        try:
            role = self._client.find_role_by_name(ctx, self.generated_role_name(username))
        except RoleNotFoundError:
            return

        logging.getLogger(__name__).debug(f"delete role {role.name} ({role.uid})")

        try:
            self._remove_binding(ctx, role)
        except Exception as e:
            # a stranded role is less harmful than a stranded binding, so still try to
            # remove the role but report the incomplete cleanup
            self._roll_back_generated_role(role, e)
            raise

        self._client.delete_role(ctx, role.uid)

    def _remove_binding(self, ctx, role):
        with self._role_permissions_lock:
            database = self._client.find_database_by_name(ctx, self._config.database)
            if database.find_permission_for_role(role.uid) is None:
                logging.getLogger(__name__).warning(
                    f"database {database.name} has no binding for generated role {role.name}")
                return
            self._client.update_database_with_retry(
                ctx, database.uid, UpdateDatabase(role_permissions=database.without_role(role.uid)))
