"""Configuration for serverstatus."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

import psutil


class Domain(Enum):
    """Independently togglable metric domains, in update order."""

    CPU = "cpu"
    NET = "net"
    RAM = "ram"
    TCP = "tcp"
    UDP = "udp"
    CONNTRACK = "conntrack"

    @classmethod
    def parse_list(cls, value: str) -> frozenset["Domain"]:
        """Parse a comma-separated list of domain names, e.g. ``"cpu,ram"``."""
        domains = set()
        for name in value.split(","):
            name = name.strip().lower()
            if not name:
                continue
            try:
                domains.add(cls(name))
            except ValueError:
                valid = ", ".join(domain.value for domain in cls)
                raise ValueError(
                    f"Unknown metric domain {name!r} (expected one of: {valid})"
                ) from None
        return frozenset(domains)


ALL_DOMAINS = frozenset(Domain)


def default_procfs_path() -> str:
    """psutil's procfs root, or /proc where psutil does not define one."""
    return getattr(psutil, "PROCFS_PATH", "/proc")


DOMAINS_ENV = "SERVERSTATUS_DOMAINS"
PROCFS_ENV = "SERVERSTATUS_PROCFS"


@dataclass(slots=True, frozen=True)
class StatusConfig:
    """
    Which metric domains to sample, and where procfs is mounted.

    ``procfs_path`` defaults to psutil's ``PROCFS_PATH`` so that pointing
    psutil at a host /proc mounted elsewhere (common in containers) applies
    here too.
    """

    domains: frozenset[Domain] = ALL_DOMAINS
    procfs_path: str = field(default_factory=default_procfs_path)

    def __post_init__(self) -> None:
        # Accept any iterable of domains but store an immutable set
        object.__setattr__(self, "domains", frozenset(self.domains))

    def is_enabled(self, domain: Domain) -> bool:
        return domain in self.domains

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "StatusConfig":
        """
        Build a configuration from environment variables.

        ``SERVERSTATUS_DOMAINS`` holds a comma-separated list of domains to
        enable (all when unset) and ``SERVERSTATUS_PROCFS`` the procfs root.
        """
        if environ is None:
            environ = os.environ
        domains = environ.get(DOMAINS_ENV)
        procfs_path = environ.get(PROCFS_ENV)
        return cls(
            domains=ALL_DOMAINS if domains is None else Domain.parse_list(domains),
            procfs_path=procfs_path or default_procfs_path(),
        )
