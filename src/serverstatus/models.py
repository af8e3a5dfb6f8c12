"""Counter snapshots for serverstatus."""

from dataclasses import dataclass

from serverstatus.numeric import saturating_add, saturating_sub


@dataclass(slots=True, frozen=True)
class CpuCounters:
    """Aggregate CPU time counters from /proc/stat, in jiffies."""

    user: int
    nice: int
    system: int
    idle: int
    io_wait: int
    irq: int
    soft_irq: int
    steal: int
    guest: int
    guest_nice: int

    @property
    def local_use(self) -> int:
        """Time spent working inside this OS."""
        return saturating_add(
            self.user,
            self.nice,
            self.system,
            self.irq,
            self.soft_irq,
            self.guest,
            self.guest_nice,
        )

    @property
    def stolen_use(self) -> int:
        """Time taken by the hypervisor for other guests."""
        return self.steal

    @property
    def use(self) -> int:
        return saturating_add(self.local_use, self.stolen_use)

    @property
    def idle_use(self) -> int:
        return saturating_add(self.idle, self.io_wait)

    @property
    def total(self) -> int:
        return saturating_add(self.use, self.idle_use)


@dataclass(slots=True, frozen=True)
class NetCounters:
    """Network counters summed over every non-loopback interface."""

    unix_millis: int
    rx_bytes: int = 0
    rx_packets: int = 0
    rx_errors: int = 0
    rx_dropped: int = 0
    rx_fifo_errors: int = 0
    rx_frame_errors: int = 0
    rx_compressed: int = 0
    rx_multicast: int = 0
    tx_bytes: int = 0
    tx_packets: int = 0
    tx_errors: int = 0
    tx_dropped: int = 0
    tx_fifo_errors: int = 0
    tx_collisions: int = 0
    tx_carrier_errors: int = 0
    tx_compressed: int = 0

    @property
    def bytes(self) -> int:
        """Bytes received plus bytes transmitted."""
        return saturating_add(self.rx_bytes, self.tx_bytes)


# Column order of an interface line in /proc/net/dev
NET_FIELDS = (
    "rx_bytes",
    "rx_packets",
    "rx_errors",
    "rx_dropped",
    "rx_fifo_errors",
    "rx_frame_errors",
    "rx_compressed",
    "rx_multicast",
    "tx_bytes",
    "tx_packets",
    "tx_errors",
    "tx_dropped",
    "tx_fifo_errors",
    "tx_collisions",
    "tx_carrier_errors",
    "tx_compressed",
)


@dataclass(slots=True, frozen=True)
class RamCounters:
    """Memory totals from /proc/meminfo, already converted to bytes."""

    total: int
    free: int = 0
    available: int = 0
    buffers: int = 0
    cached: int = 0
    slab_reclaimable: int = 0
    swap_total: int = 0
    swap_free: int = 0

    @property
    def used(self) -> int:
        """Memory in use, excluding reclaimable caches."""
        used = saturating_sub(self.total, self.free)
        used = saturating_sub(used, self.buffers)
        used = saturating_sub(used, self.cached)
        return saturating_sub(used, self.slab_reclaimable)

    @property
    def swap_used(self) -> int:
        return saturating_sub(self.swap_total, self.swap_free)


@dataclass(slots=True, frozen=True)
class ConnectionCount:
    """Number of records in a connection table."""

    count: int
