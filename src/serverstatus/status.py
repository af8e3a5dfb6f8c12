"""Aggregate server status built from the per-domain samplers."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from operator import attrgetter
from pathlib import Path

from serverstatus.config import Domain, StatusConfig
from serverstatus.delta import (
    SourceState,
    current_ratio,
    current_value,
    delta_ratio,
    delta_rate,
)
from serverstatus.errors import DomainDisabled, StatusError
from serverstatus.numeric import unix_millis
from serverstatus.samplers import (
    CpuSampler,
    FileSampler,
    LineCountSampler,
    NetSampler,
    RamSampler,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DomainState:
    """A domain's sampler together with its two most recent snapshots."""

    sampler: FileSampler
    state: SourceState = field(default_factory=SourceState)

    def update(self) -> None:
        """Replace ``new`` with a fresh sample, moving the current one to ``old``."""
        try:
            snapshot = self.sampler.sample()
        except StatusError:
            # The domain has no current data until its next successful sample
            self.state.shift()
            raise
        self.state.advance(snapshot)


class ServerStatus:
    """
    Simple status of a Linux server, measured from procfs.

    Call ``update()`` at whatever cadence suits the caller; rate and usage
    metrics describe the interval between the last two updates. Instances are
    not thread-safe: use one per thread or serialize access externally.
    """

    def __init__(
        self,
        config: StatusConfig | None = None,
        clock: Callable[[], int] = unix_millis,
    ) -> None:
        """
        Initialize the ServerStatus.

        Args:
            config: Enabled domains and procfs location. Defaults to all
                domains under psutil's procfs path.
            clock: Millisecond wall clock used to timestamp network samples.
        """
        self._config = config if config is not None else StatusConfig()
        # Domain declaration order is the update order
        self._domains: dict[Domain, DomainState] = {
            domain: DomainState(self._build_sampler(domain, clock))
            for domain in Domain
            if self._config.is_enabled(domain)
        }

    def _build_sampler(self, domain: Domain, clock: Callable[[], int]) -> FileSampler:
        root = Path(self._config.procfs_path)
        if domain is Domain.CPU:
            return CpuSampler(root / "stat")
        if domain is Domain.NET:
            return NetSampler(root / "net" / "dev", clock=clock)
        if domain is Domain.RAM:
            return RamSampler(root / "meminfo")
        if domain is Domain.TCP:
            return LineCountSampler(root / "net" / "tcp")
        if domain is Domain.UDP:
            return LineCountSampler(root / "net" / "udp")
        return LineCountSampler(root / "net" / "nf_conntrack", require_colon=False)

    @property
    def config(self) -> StatusConfig:
        return self._config

    @property
    def enabled_domains(self) -> tuple[Domain, ...]:
        """Enabled domains in update order."""
        return tuple(self._domains)

    def update(self) -> None:
        """
        Take a new measurement of every enabled domain.

        Every domain is attempted even if an earlier one fails, so domains that
        sampled successfully hold fresh data afterwards.

        Raises:
            StatusError: At least one domain failed. The error of the first
                failing domain, in update order, is raised.
        """
        first_error: StatusError | None = None
        for domain, domain_state in self._domains.items():
            try:
                domain_state.update()
            except StatusError as err:
                logger.warning("Failed to sample %s: %s", domain.value, err)
                if first_error is None:
                    first_error = err

        if first_error is not None:
            raise first_error
        logger.debug("Updated %d domains", len(self._domains))

    def _state(self, domain: Domain) -> SourceState:
        try:
            return self._domains[domain].state
        except KeyError:
            raise DomainDisabled(f"Metric domain {domain.value!r} is disabled") from None

    # CPU

    def cpu_usage(self) -> float | None:
        """Fraction (0.0 to 1.0) of CPU time used between the last two updates."""
        return delta_ratio(
            self._state(Domain.CPU), attrgetter("use"), attrgetter("total")
        )

    def cpu_local_usage(self) -> float | None:
        """Fraction of CPU time used by this OS between the last two updates."""
        return delta_ratio(
            self._state(Domain.CPU), attrgetter("local_use"), attrgetter("total")
        )

    def cpu_stolen_usage(self) -> float | None:
        """
        Fraction of CPU time taken outside this OS (i.e. by the hypervisor)
        between the last two updates.
        """
        return delta_ratio(
            self._state(Domain.CPU), attrgetter("stolen_use"), attrgetter("total")
        )

    def cpu_idle_usage(self) -> float | None:
        """Fraction of CPU time spent idle or waiting on I/O."""
        return delta_ratio(
            self._state(Domain.CPU), attrgetter("idle_use"), attrgetter("total")
        )

    # Network

    def net_bandwidth(self) -> int | None:
        """Bytes per second received and transmitted between the last two updates."""
        return delta_rate(self._state(Domain.NET), attrgetter("bytes"))

    def net_reception_bandwidth(self) -> int | None:
        """Bytes per second received between the last two updates."""
        return delta_rate(self._state(Domain.NET), attrgetter("rx_bytes"))

    def net_transmission_bandwidth(self) -> int | None:
        """Bytes per second transmitted between the last two updates."""
        return delta_rate(self._state(Domain.NET), attrgetter("tx_bytes"))

    def net_reception_packet_rate(self) -> int | None:
        return delta_rate(self._state(Domain.NET), attrgetter("rx_packets"))

    def net_transmission_packet_rate(self) -> int | None:
        return delta_rate(self._state(Domain.NET), attrgetter("tx_packets"))

    # RAM

    def ram_usage(self) -> float | None:
        """Fraction (0.0 to 1.0) of RAM used as of the last update."""
        return current_ratio(
            self._state(Domain.RAM), attrgetter("used"), attrgetter("total")
        )

    def ram_swap_usage(self) -> float | None:
        """Fraction of swap used as of the last update; None without swap."""
        return current_ratio(
            self._state(Domain.RAM),
            attrgetter("swap_used"),
            attrgetter("swap_total"),
        )

    def ram_total_bytes(self) -> int | None:
        return current_value(self._state(Domain.RAM), attrgetter("total"))

    def ram_used_bytes(self) -> int | None:
        return current_value(self._state(Domain.RAM), attrgetter("used"))

    # Connection tables

    def tcp_connections(self) -> int | None:
        """Number of TCP connections as of the last update."""
        return self._count(Domain.TCP)

    def udp_sockets(self) -> int | None:
        """Number of UDP sockets as of the last update."""
        return self._count(Domain.UDP)

    def conntrack_sessions(self) -> int | None:
        """Number of connection-tracking sessions as of the last update."""
        return self._count(Domain.CONNTRACK)

    def _count(self, domain: Domain) -> int | None:
        return current_value(self._state(domain), attrgetter("count"))
