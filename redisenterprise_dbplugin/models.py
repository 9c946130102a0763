# -*- coding: utf-8 -*-
"""Transient mirrors of the cluster's REST resources.

Nothing here is persisted. Each type decodes from the JSON the cluster returns with
unknown fields ignored, and the request types encode into the bodies the cluster expects.
"""

import json
from dataclasses import dataclass, field
from typing import List, Optional

from dateutil import parser

from .exceptions import StatementError

DB_MEMBER_MANAGEMENT = "db_member"
REGULAR_AUTH_METHOD = "regular"


@dataclass
class User:
    uid: int
    name: str = ""
    email: str = ""
    role_uids: List[int] = field(default_factory=list)
    password_issue_date: str = ""

    @classmethod
    def from_json(cls, data):
        return cls(
            uid=data["uid"],
            name=data.get("name") or "",
            email=data.get("email") or "",
            role_uids=list(data.get("role_uids") or []),
            password_issue_date=data.get("password_issue_date") or "",
        )

    @property
    def password_issued_at(self):
        """When the current password was set, None if the cluster did not say."""
        if not self.password_issue_date:
            return None
        return parser.parse(self.password_issue_date)


@dataclass
class Role:
    uid: int
    name: str = ""
    management: str = ""

    @classmethod
    def from_json(cls, data):
        return cls(uid=data["uid"], name=data.get("name") or "", management=data.get("management") or "")


@dataclass
class ACL:
    uid: int
    name: str = ""

    @classmethod
    def from_json(cls, data):
        return cls(uid=data["uid"], name=data.get("name") or "")


@dataclass(frozen=True)
class RolePermission:
    role_uid: int
    acl_uid: int

    @classmethod
    def from_json(cls, data):
        return cls(role_uid=data.get("role_uid"), acl_uid=data.get("redis_acl_uid"))

    def to_json(self):
        return {"role_uid": self.role_uid, "redis_acl_uid": self.acl_uid}


@dataclass
class Database:
    uid: int
    name: str = ""
    role_permissions: List[RolePermission] = field(default_factory=list)

    @classmethod
    def from_json(cls, data):
        return cls(
            uid=data["uid"],
            name=data.get("name") or "",
            role_permissions=[RolePermission.from_json(p) for p in data.get("roles_permissions") or []],
        )

    def find_permission_for_role(self, role_uid) -> Optional[RolePermission]:
        for permission in self.role_permissions:
            if permission.role_uid == role_uid:
                return permission
        return None

    def without_role(self, role_uid) -> List[RolePermission]:
        """The permissions list with the first binding for role_uid removed."""
        permissions = list(self.role_permissions)
        for index, permission in enumerate(permissions):
            if permission.role_uid == role_uid:
                del permissions[index]
                break
        return permissions


@dataclass
class Cluster:
    name: str = ""

    @classmethod
    def from_json(cls, data):
        return cls(name=data.get("name") or "")


@dataclass
class CreateUser:
    name: str = ""
    password: str = ""
    email: str = ""
    role_uids: List[int] = field(default_factory=list)
    email_alerts: bool = False
    auth_method: str = REGULAR_AUTH_METHOD

    def to_json(self):
        body = {}
        for key in ["name", "email", "password", "role_uids", "auth_method"]:
            value = getattr(self, key)
            if value:
                body[key] = value
        body["email_alerts"] = self.email_alerts
        return body


@dataclass
class UpdateUser:
    password: str = ""

    def to_json(self):
        return {"password": self.password} if self.password else {}


@dataclass
class CreateRole:
    name: str
    management: str = DB_MEMBER_MANAGEMENT

    def to_json(self):
        return {"name": self.name, "management": self.management}


@dataclass
class UpdateDatabase:
    role_permissions: List[RolePermission] = field(default_factory=list)

    def to_json(self):
        return {"roles_permissions": [p.to_json() for p in self.role_permissions]}


@dataclass(frozen=True)
class Statement:
    """A decoded creation statement naming a role, an ACL, or both."""

    role: str = ""
    acl: str = ""

    ALLOWED_KEYS = ("role", "acl")

    def has_role(self):
        return self.role != ""

    def has_acl(self):
        return self.acl != ""

    @classmethod
    def parse(cls, commands, role_name):
        """Decodes the single JSON creation command for the host role role_name.

        Raises StatementError for anything other than one JSON object holding string
        "role" and/or "acl" values with at least one of them non-empty.
        """
        if len(commands) != 1:
            raise StatementError("one creation statement is required")

        try:
            data = json.loads(commands[0])
        except ValueError as e:
            raise StatementError(f"cannot parse JSON for db role: {e}") from e

        if not isinstance(data, dict):
            raise StatementError(f"creation statement for {role_name} must be a JSON object")

        unknown = sorted(set(data) - set(cls.ALLOWED_KEYS))
        if unknown:
            raise StatementError(
                f"unexpected keys {', '.join(unknown)} in creation statement for {role_name}")

        for key in cls.ALLOWED_KEYS:
            if data.get(key) is not None and not isinstance(data[key], str):
                raise StatementError(f"'{key}' in creation statement for {role_name} must be a string")

        statement = cls(role=data.get("role") or "", acl=data.get("acl") or "")
        if not statement.has_role() and not statement.has_acl():
            raise StatementError(f"no 'role' or 'acl' in creation statement for {role_name}")
        return statement
