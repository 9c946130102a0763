# -*- coding: utf-8 -*-

from dataclasses import dataclass, field

from .exceptions import ConfigurationError

ACL_ONLY_FEATURE = "acl_only"


@dataclass(frozen=True)
class PluginConfig:
    """Connection settings and feature flags, fixed once the plugin is initialized.

    {
        "url": "string",       # cluster REST API, e.g. https://cluster.example:9443
        "username": "string",  # cluster admin user (name or email)
        "password": "string",  # redacted from every error surfaced to the host
        "database": "string",  # optional, scopes role bindings to one bdb
        "features": "string"   # optional comma separated flags, only acl_only is known
    }
    """

    url: str
    username: str
    password: str = field(repr=False)
    database: str = ""
    features: str = ""

    @classmethod
    def from_mapping(cls, raw):
        """Weakly decodes raw host configuration and validates it."""
        def value(key):
            item = raw.get(key)
            return "" if item is None else str(item)

        config = cls(
            url=value("url"),
            username=value("username"),
            password=value("password"),
            database=value("database"),
            features=value("features"),
        )
        config.validate()
        return config

    def validate(self):
        for key in ["url", "username", "password"]:
            if not getattr(self, key):
                raise ConfigurationError(f"{key} is required")

        if not self.has_database() and self.has_feature(ACL_ONLY_FEATURE):
            raise ConfigurationError(
                "the acl_only feature cannot be enabled if there is no database specified")

    def has_database(self):
        return self.database != ""

    def has_feature(self, name):
        if not self.features:
            return False
        return name in [feature.strip() for feature in self.features.split(",")]

    def supports_acl_only(self):
        return self.has_database() and self.has_feature(ACL_ONLY_FEATURE)
