# -*- coding: utf-8 -*-

import json
import logging
import secrets
import string
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import google.auth
import google_crc32c
from google.cloud import secretmanager, secretmanager_v1

from .context import Context
from .dbplugin import InitializeRequest, UpdateUserRequest, ChangePassword
from .exceptions import RotationError
from .plugin import new

"""
Rotation of the plugin's own cluster admin password held in GCP Secret Manager.

The secret value is the plugin configuration as utf-8 json

{
    "url": "string",
    "username": "string",   # admin user name, or the email it was provisioned with
    "password": "string",
    "database": "string",   # optional
    "features": "string"    # optional
}

The secret must carry the label secret_type=redisenterprise-root and a rotation schedule
publishing to a topic whose subscriber calls RootCredentialRotator.rotate_secret, see
https://cloud.google.com/secret-manager/docs/secret-rotation
"""

ROOT_SECRET_TYPE = "redisenterprise-root"


@dataclass
class RootRotationMeta:
    secret_id: str
    labels: dict
    rotation_period_seconds: int

    @property
    def disable_oldest_time(self):
        return datetime.now(timezone.utc) - timedelta(
            seconds=int(self.rotation_period_seconds * 1.5)
        )


class RootCredentialRotator:
    """Changes the cluster admin password and stores it as a new secret version.

    GCP clients and credentials are kept per thread so one rotator can serve concurrent
    rotation events. The credentials need roles/secretmanager.secretVersionManager and
    roles/secretmanager.secretAccessor on the secret.
    """

    def __init__(
        self,
        plugin_factory=None,
        password_length=20,
        exclude_characters=None,
        timeout=300,
        _credentials_callback=None,
    ):
        """
        Args:
            plugin_factory (callable, optional): Returns a fresh plugin, by default
                one wrapped in the error sanitizer.
            password_length (int, optional): Length of generated passwords.
            exclude_characters (str, optional): Characters never used in passwords.
            timeout (int, optional): Seconds allowed for the cluster side of a rotation.
            _credentials_callback (callable, optional): Returns (credentials, project_id);
                google.auth.default() when not given.
        """
        self._plugin_factory = plugin_factory or new
        self._password_length = password_length
        self._exclude_characters = exclude_characters or " ,'\"\\+=%^*~[].{}@&"
        self._timeout = timeout
        self._credentials_callback = _credentials_callback
        self.ns = threading.local()

    @property
    def credentials(self):
        if not hasattr(self.ns, "_credentials"):
            if self._credentials_callback is not None:
                _credentials, _project_id = self._credentials_callback()
            else:
                _credentials, _project_id = google.auth.default()
            self.ns._credentials = _credentials
        return self.ns._credentials

    @property
    def _client(self):
        if not hasattr(self.ns, "client"):
            self.ns.client = secretmanager.SecretManagerServiceClient(
                credentials=self.credentials
            )
        return self.ns.client

    def rotate_secret(self, attributes, data):
        """Handles a Secret Manager Pub/Sub notification.

        Args:
            attributes (dict): Message attributes, expected to hold eventType and secretId.
            data (bytes): Message payload, the secret resource as json.
        """
        data = json.loads(data.decode("utf-8"))
        if (
            attributes.get("eventType") != "SECRET_ROTATE"
            or "secretId" not in attributes
            or data.get("labels", {}).get("secret_type") != ROOT_SECRET_TYPE
        ):
            logging.getLogger(__name__).warning(
                f"Received event that does not meet predicates for root rotation attributes:"
                f"{json.dumps(attributes)}"
            )
            return

        meta = RootRotationMeta(
            secret_id=attributes["secretId"],
            labels=data["labels"],
            rotation_period_seconds=int(data["rotation"]["rotationPeriod"][:-1]),
        )
        self.rotate(meta)

    def rotate(self, meta):
        config = self.current_config(meta.secret_id)
        new_password = self._generate_password()

        plugin = self._plugin_factory()
        ctx = Context.with_timeout(self._timeout)
        try:
            plugin.initialize(InitializeRequest(config=config, verify_connection=True), ctx)
            plugin.update_user(
                UpdateUserRequest(username=config["username"],
                                  password=ChangePassword(new_password=new_password)),
                ctx,
            )
        finally:
            plugin.close()

        logging.getLogger(__name__).info(f"Changed cluster password for {config['username']}")

        try:
            self.add_new_version(meta, {**config, "password": new_password})
        except Exception as e:
            # the cluster already holds the new password
            logging.getLogger(__name__).exception(
                f"Cluster password changed but not stored for {meta.secret_id}")
            raise RotationError(meta.secret_id, type(e).__name__) from None

        self.disable_old_secret_versions(meta)

    def _latest_enabled_version(self, secret_id):
        request = secretmanager_v1.ListSecretVersionsRequest(
            parent=secret_id, filter="state=ENABLED"
        )
        latest = None
        for response in sorted(self._client.list_secret_versions(request=request),
                               key=lambda d: d.create_time):
            latest = response
        return latest

    def current_config(self, secret_id):
        latest = self._latest_enabled_version(secret_id)
        if latest is None:
            raise RotationError(secret_id, "no enabled version holds the current credentials")

        request = secretmanager_v1.AccessSecretVersionRequest(name=latest.name)
        payload = self._client.access_secret_version(request).payload.data
        return json.loads(payload.decode("utf-8"))

    def disable_old_secret_versions(self, meta):
        """Disables enabled versions older than 1.5 rotation periods, never the newest."""
        request = secretmanager_v1.ListSecretVersionsRequest(
            parent=meta.secret_id, filter="state=ENABLED"
        )
        versions = sorted(self._client.list_secret_versions(request=request),
                          key=lambda d: d.create_time)
        for version in versions[:-1]:
            if version.create_time < meta.disable_oldest_time:
                self._client.disable_secret_version(name=version.name)

    def add_new_version(self, meta, secret):
        secret = json.dumps(secret).encode("utf8")

        crc32c = google_crc32c.Checksum()
        crc32c.update(secret)

        return self._client.add_secret_version(
            request={
                "parent": meta.secret_id,
                "payload": {"data": secret, "data_crc32c": int(crc32c.hexdigest(), 16)},
            }
        )

    def _generate_password(self):
        letters = string.ascii_letters + string.digits
        password = ""
        while len(password) < self._password_length:
            candidate = secrets.choice(letters)
            if candidate not in self._exclude_characters:
                password = password + candidate
        return password
