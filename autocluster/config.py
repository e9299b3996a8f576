"""
Autocluster Configuration

Settings for the cluster formation pipeline, loaded from environment
variables with pydantic-settings. Each field is read from the variable
named in its alias (``AUTOCLUSTER_TYPE``, ``CONSUL_HOST``, ...) and may
also be passed by field name to the constructor.

The configuration is built once per process and handed to the
orchestrator explicitly.
"""

from __future__ import annotations

import socket
from typing import Any, Dict, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from autocluster.types import BackendKind, NodeIdentity, NodeType

_UNDEFINED = "undefined"


def _setting(name: str, env: str, default: Any, **kwargs: Any) -> Any:
    """Field readable by name (constructor) or by environment variable."""
    return Field(default=default, validation_alias=AliasChoices(name, env), **kwargs)


def _port(name: str, env: str, default: int) -> Any:
    return _setting(name, env, default, ge=1, le=65535)


# Backend-specific keys handed opaquely to the selected driver
_BACKEND_KEYS: Dict[BackendKind, tuple] = {
    BackendKind.AWS: (
        "aws_autoscaling",
        "aws_ec2_tags",
        "aws_access_key",
        "aws_secret_key",
        "aws_ec2_region",
    ),
    BackendKind.CONSUL: (
        "cluster_name",
        "consul_acl",
        "consul_scheme",
        "consul_host",
        "consul_port",
        "consul_service",
        "consul_service_port",
        "consul_service_address",
        "consul_service_prefix",
        "consul_service_ttl",
    ),
    BackendKind.DNS: ("autocluster_host",),
    BackendKind.ETCD: (
        "cluster_name",
        "etcd_scheme",
        "etcd_host",
        "etcd_port",
        "etcd_prefix",
        "etcd_node_ttl",
    ),
}


class AutoclusterConfig(BaseSettings):
    """
    Cluster formation settings.

    ``backend`` and ``autocluster_failure`` stay plain strings: an
    unsupported backend is reported when the pipeline selects its driver,
    and an invalid failure mode only produces a warning.
    """

    # General
    backend: str = _setting("backend", "AUTOCLUSTER_TYPE", BackendKind.CONSUL.value)
    autocluster_failure: str = _setting("autocluster_failure", "AUTOCLUSTER_FAILURE", "ignore")
    startup_delay: int = _setting("startup_delay", "AUTOCLUSTER_DELAY", 5, ge=0)
    # Dead-node cleanup runs outside the startup pipeline; kept in the table
    # so the full set of variables validates in one place.
    autocluster_cleanup: bool = _setting("autocluster_cleanup", "AUTOCLUSTER_CLEANUP", False)
    cleanup_interval: int = _setting("cleanup_interval", "CLEANUP_INTERVAL", 60, ge=1)
    log_level: str = _setting("log_level", "AUTOCLUSTER_LOG_LEVEL", "info")
    longname: bool = _setting("longname", "RABBITMQ_USE_LONGNAME", False)
    node_name: str = _setting("node_name", "RABBITMQ_NODENAME", "rabbit", min_length=1)
    node_type: NodeType = _setting("node_type", "RABBITMQ_NODE_TYPE", NodeType.DISC)

    # Liveness probing
    probe_port: int = _port("probe_port", "AUTOCLUSTER_PROBE_PORT", 4369)
    probe_timeout: float = _setting("probe_timeout", "AUTOCLUSTER_PROBE_TIMEOUT", 5.0, gt=0)

    # AWS
    aws_autoscaling: bool = _setting("aws_autoscaling", "AWS_AUTOSCALING", False)
    aws_ec2_tags: Optional[str] = _setting("aws_ec2_tags", "AWS_EC2_TAGS", None)
    aws_access_key: Optional[str] = _setting("aws_access_key", "AWS_ACCESS_KEY_ID", None)
    aws_secret_key: Optional[str] = _setting("aws_secret_key", "AWS_SECRET_ACCESS_KEY", None)
    aws_ec2_region: Optional[str] = _setting("aws_ec2_region", "AWS_DEFAULT_REGION", None)

    # Consul && etcd
    cluster_name: Optional[str] = _setting("cluster_name", "CLUSTER_NAME", None)

    # Consul
    consul_acl: Optional[str] = _setting("consul_acl", "CONSUL_ACL", None)
    consul_scheme: str = _setting("consul_scheme", "CONSUL_SCHEME", "http")
    consul_host: str = _setting("consul_host", "CONSUL_HOST", "localhost")
    consul_port: int = _port("consul_port", "CONSUL_PORT", 8500)
    consul_service: str = _setting("consul_service", "CONSUL_SERVICE", "rabbitmq")
    consul_service_port: int = _port("consul_service_port", "CONSUL_SERVICE_PORT", 5672)
    consul_service_address: Optional[str] = _setting(
        "consul_service_address", "CONSUL_SERVICE_ADDRESS", None
    )
    consul_service_prefix: Optional[str] = _setting(
        "consul_service_prefix", "CONSUL_SERVICE_PREFIX", None
    )
    consul_service_ttl: int = _setting("consul_service_ttl", "CONSUL_SERVICE_TTL", 30, ge=1)

    # DNS
    autocluster_host: Optional[str] = _setting("autocluster_host", "AUTOCLUSTER_HOST", None)

    # etcd
    etcd_scheme: str = _setting("etcd_scheme", "ETCD_SCHEME", "http")
    etcd_host: str = _setting("etcd_host", "ETCD_HOST", "localhost")
    etcd_port: int = _port("etcd_port", "ETCD_PORT", 2379)
    etcd_prefix: str = _setting("etcd_prefix", "ETCD_PREFIX", "rabbitmq")
    etcd_node_ttl: int = _setting("etcd_node_ttl", "ETCD_NODE_TTL", 30, ge=1)

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "aws_ec2_tags",
        "aws_access_key",
        "aws_secret_key",
        "aws_ec2_region",
        "cluster_name",
        "consul_acl",
        "consul_service_address",
        "consul_service_prefix",
        "autocluster_host",
        mode="before",
    )
    @classmethod
    def undefined_as_none(cls, v: Any) -> Any:
        """Treat the literal ``undefined`` (and blanks) as unset."""
        if isinstance(v, str) and v.strip() in ("", _UNDEFINED):
            return None
        return v

    @field_validator("backend", "autocluster_failure", "log_level", mode="before")
    @classmethod
    def normalize_atom(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def backend_options(self, kind: BackendKind) -> Dict[str, Any]:
        """Keys the driver for *kind* is constructed from."""
        keys = _BACKEND_KEYS.get(BackendKind(kind), ())
        return {key: getattr(self, key) for key in keys}

    def local_node(self) -> NodeIdentity:
        """
        This node's identity, ``name@host``.

        ``RABBITMQ_NODENAME`` may already carry a host part, in which case it
        is used as is. Otherwise the short hostname is appended, or the fully
        qualified one when long names are enabled.
        """
        if "@" in self.node_name:
            return self.node_name
        if self.longname:
            host = socket.getfqdn()
        else:
            host = socket.gethostname().split(".", 1)[0]
        return f"{self.node_name}@{host}"
