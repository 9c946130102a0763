# -*- coding: utf-8 -*-
"""
Cluster REST client against a mocked requests session

"""
import json
import logging
import threading
import unittest
from unittest import mock

import requests

from redisenterprise_dbplugin import *
from redisenterprise_dbplugin.models import CreateUser, CreateRole, UpdateDatabase, UpdateUser, \
    RolePermission


def setup_module():
    logging.basicConfig(level=logging.DEBUG)


def response(status=200, body=None, text=None):
    resp = requests.Response()
    resp.status_code = status
    if text is not None:
        resp._content = text.encode("utf-8")
    elif body is not None:
        resp._content = json.dumps(body).encode("utf-8")
    else:
        resp._content = b""
    return resp


class ClientTestCase(unittest.TestCase):
    def setUp(self):
        self.client = ClusterClient()
        self.client.initialise("https://cluster.test:9443/", "expected", "Password")
        self.client.session = mock.Mock()
        self.client.retry_delay = 0.0
        self.ctx = Context.background()

    def respond(self, *responses):
        self.client.session.request.side_effect = list(responses)

    def sent(self, index=0):
        args, kwargs = self.client.session.request.call_args_list[index]
        return args, kwargs


class TestRequests(ClientTestCase):

    def test_initialise(self):
        client = ClusterClient()
        client.initialise("https://cluster.test:9443/", "expected", "Password")
        assert client.url == "https://cluster.test:9443"
        assert client.session.auth == ("expected", "Password")
        assert client.session.verify is False
        client.close()

    def test_get_sends_no_body(self):
        self.respond(response(body={"name": "cluster.test"}))

        cluster = self.client.get_cluster(self.ctx)

        assert cluster.name == "cluster.test"
        args, kwargs = self.sent()
        assert args == ("GET", "https://cluster.test:9443/v1/cluster")
        assert kwargs["headers"] == {"Accept": "application/json"}
        assert "json" not in kwargs
        assert kwargs["timeout"] == 60

    def test_timeout_bounded_by_context(self):
        self.respond(response(body={"name": "cluster.test"}))

        self.client.get_cluster(Context.with_timeout(5))

        _, kwargs = self.sent()
        assert 0 < kwargs["timeout"] <= 5

    def test_expired_context_sends_nothing(self):
        ctx = Context.background()
        ctx.cancel()

        with self.assertRaises(ContextExpiredError):
            self.client.get_cluster(ctx)
        self.client.session.request.assert_not_called()

    def test_http_error(self):
        self.respond(response(status=400, text="  bad request \n"))

        with self.assertRaises(HttpError) as raised:
            self.client.delete_user(self.ctx, 7)

        assert raised.exception == HttpError("DELETE", "/v1/users/7", 400, "bad request")
        assert raised.exception.status == 400

    def test_transport_error(self):
        self.client.session.request.side_effect = requests.ConnectionError("refused")

        with self.assertRaises(TransportError) as raised:
            self.client.list_roles(self.ctx)

        assert "GET /v1/roles" in str(raised.exception)
        assert isinstance(raised.exception.__cause__, requests.ConnectionError)

    def test_undecodable_response(self):
        self.respond(response(text="<html>"))

        with self.assertRaises(TransportError):
            self.client.list_users(self.ctx)

    def test_create_user_body(self):
        self.respond(response(body={"uid": 9, "name": "v-user", "role_uids": [4]}))

        user = self.client.create_user(self.ctx, CreateUser(name="v-user", password="pw", role_uids=[4]))

        assert user.uid == 9 and user.role_uids == [4]
        args, kwargs = self.sent()
        assert args == ("POST", "https://cluster.test:9443/v1/users")
        assert kwargs["json"] == {
            "name": "v-user",
            "password": "pw",
            "role_uids": [4],
            "auth_method": "regular",
            "email_alerts": False,
        }
        assert kwargs["headers"]["Content-Type"] == "application/json;charset=utf-8"

    def test_update_password_body(self):
        self.respond(response())

        self.client.update_user_password(self.ctx, 3, UpdateUser(password="new"))

        args, kwargs = self.sent()
        assert args == ("PUT", "https://cluster.test:9443/v1/users/3")
        assert kwargs["json"] == {"password": "new"}

    def test_create_and_delete_role(self):
        self.respond(response(body={"uid": 4, "name": "mydb-v-user", "management": "db_member"}),
                     response())

        role = self.client.create_role(self.ctx, CreateRole(name="mydb-v-user"))
        self.client.delete_role(self.ctx, role.uid)

        assert role.management == "db_member"
        assert self.sent(0)[1]["json"] == {"name": "mydb-v-user", "management": "db_member"}
        assert self.sent(1)[0] == ("DELETE", "https://cluster.test:9443/v1/roles/4")

    def test_database_decoding(self):
        self.respond(response(body={
            "uid": 3,
            "name": "mydb",
            "roles_permissions": [{"role_uid": 1, "redis_acl_uid": 2}],
            "memory_size": 1024,
        }))

        database = self.client.get_database(self.ctx, 3)

        assert database.role_permissions == [RolePermission(role_uid=1, acl_uid=2)]
        assert database.find_permission_for_role(1).acl_uid == 2
        assert database.find_permission_for_role(5) is None


class TestFindByName(ClientTestCase):

    def test_find_user_uses_name_first(self):
        self.respond(response(body=[
            {"uid": -1, "name": "other", "email": "needle"},
            {"uid": 2, "name": "needle"},
        ]))

        assert self.client.find_user_by_name(self.ctx, "needle").uid == 2

    def test_find_user_falls_back_to_email(self):
        self.respond(response(body=[
            {"uid": -1, "name": "other", "email": "foo@example.com"},
            {"uid": 2, "email": "needle"},
        ]))

        assert self.client.find_user_by_name(self.ctx, "needle").uid == 2

    def test_not_found_errors(self):
        for find, path, error in [
            (self.client.find_user_by_name, "/v1/users", UserNotFoundError),
            (self.client.find_role_by_name, "/v1/roles", RoleNotFoundError),
            (self.client.find_acl_by_name, "/v1/redis_acls", ACLNotFoundError),
            (self.client.find_database_by_name, "/v1/bdbs", DatabaseNotFoundError),
        ]:
            with self.subTest(path=path):
                self.respond(response(body=[{"uid": 1, "name": "other"}]))
                with self.assertRaises(error) as raised:
                    find(self.ctx, "needle")
                assert raised.exception.name == "needle"
                assert isinstance(raised.exception, NotFoundError)
                assert self.client.session.request.call_args[0][1].endswith(path)

    def test_find_acl(self):
        self.respond(response(body=[{"uid": 1, "name": "other"}, {"uid": 3, "name": "Not Dangerous"}]))

        assert self.client.find_acl_by_name(self.ctx, "Not Dangerous").uid == 3


class TestUpdateDatabaseWithRetry(ClientTestCase):

    UPDATE = UpdateDatabase(role_permissions=[RolePermission(role_uid=1, acl_uid=2)])

    def test_retries_conflicts(self):
        self.respond(response(409, text="try again"), response(409, text="try again"), response())

        self.client.update_database_with_retry(self.ctx, 3, self.UPDATE)

        assert self.client.session.request.call_count == 3
        args, kwargs = self.sent(2)
        assert args == ("PUT", "https://cluster.test:9443/v1/bdbs/3")
        assert kwargs["json"] == {"roles_permissions": [{"role_uid": 1, "redis_acl_uid": 2}]}

    def test_gives_up_on_other_errors(self):
        self.respond(response(409, text="try again"), response(409, text="try again"),
                     response(418, text="done"), response())

        with self.assertRaises(HttpError) as raised:
            self.client.update_database_with_retry(self.ctx, 3, self.UPDATE)

        assert raised.exception == HttpError("PUT", "/v1/bdbs/3", 418, "done")
        assert self.client.session.request.call_count == 3

    def test_too_many_conflicts(self):
        self.client.session.request.side_effect = lambda *args, **kwargs: response(409, text="busy")

        with self.assertRaises(RetryExhaustedError) as raised:
            self.client.update_database_with_retry(self.ctx, 3, self.UPDATE)

        assert self.client.session.request.call_count == 30
        assert raised.exception.database_uid == 3
        assert "too many retries" in str(raised.exception)

    def test_cancelled_context_stops_retrying(self):
        self.client.retry_delay = 10.0
        ctx = Context.background()
        self.client.session.request.side_effect = lambda *args, **kwargs: response(409, text="busy")
        timer = threading.Timer(0.1, ctx.cancel)
        timer.start()

        try:
            with self.assertRaises(ContextExpiredError):
                self.client.update_database_with_retry(ctx, 3, self.UPDATE)
        finally:
            timer.cancel()

        assert self.client.session.request.call_count == 1

    def test_deadline_stops_retrying(self):
        self.client.retry_delay = 0.05
        self.client.session.request.side_effect = lambda *args, **kwargs: response(409, text="busy")

        with self.assertRaises(ContextExpiredError) as raised:
            self.client.update_database_with_retry(Context.with_timeout(0.12), 3, self.UPDATE)

        assert "deadline" in str(raised.exception)
        assert self.client.session.request.call_count < 30
