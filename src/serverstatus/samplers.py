"""
Counter samplers for kernel pseudo-files.

Each sampler reads its source once per ``sample()`` call, opening the file
fresh every time, and parses it into an immutable snapshot. Samplers keep no
state between calls.
"""

import logging
from collections.abc import Callable
from pathlib import Path

from serverstatus.errors import MalformedSource, SourceUnavailable
from serverstatus.models import (
    NET_FIELDS,
    ConnectionCount,
    CpuCounters,
    NetCounters,
    RamCounters,
)
from serverstatus.numeric import (
    parse_optional_uint,
    parse_required_uint,
    saturating_add,
    saturating_mul,
    unix_millis,
)

logger = logging.getLogger(__name__)


class FileSampler:
    """Base class for samplers backed by a single pseudo-file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r})"

    def sample(self):
        """Read the source once and parse it into a snapshot."""
        raise NotImplementedError

    def _read_lines(self) -> list[str]:
        """Read the whole source in one go and split it into lines."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as err:
            raise MalformedSource(f"{self.path} is not valid text") from err
        except OSError as err:
            raise SourceUnavailable(f"{self.path} unreadable: {err}") from err
        return text.splitlines()

    def _fail(self, err: MalformedSource, line: str) -> MalformedSource:
        """Re-raise a field parsing error with the source path attached."""
        return type(err)(f"{self.path}: {err} in line {line.strip()!r}")


class CpuSampler(FileSampler):
    """Sample the aggregate ``cpu`` line of /proc/stat."""

    def sample(self) -> CpuCounters:
        lines = self._read_lines()
        if not lines:
            raise MalformedSource(f"{self.path} missing first line")

        first_line = lines[0]
        tokens = iter(first_line.split())
        if next(tokens, None) != "cpu":
            raise MalformedSource(f"{self.path} does not start with the cpu line")

        # https://man7.org/linux/man-pages/man5/proc.5.html
        try:
            counters = CpuCounters(
                # Present since the earliest kernels
                user=parse_required_uint(tokens),
                nice=parse_required_uint(tokens),
                system=parse_required_uint(tokens),
                idle=parse_required_uint(tokens),
                # Added in later kernels
                io_wait=parse_optional_uint(tokens),
                irq=parse_optional_uint(tokens),
                soft_irq=parse_optional_uint(tokens),
                steal=parse_optional_uint(tokens),
                guest=parse_optional_uint(tokens),
                guest_nice=parse_optional_uint(tokens),
            )
        except MalformedSource as err:
            raise self._fail(err, first_line) from err

        logger.debug("Sampled %s: %s", self.path, counters)
        return counters


class NetSampler(FileSampler):
    """Sample /proc/net/dev, summing every interface except loopback."""

    HEADER_LINES = 2
    LOOPBACK = "lo"

    def __init__(
        self,
        path: str | Path,
        clock: Callable[[], int] = unix_millis,
    ) -> None:
        """
        Initialize the NetSampler.

        Args:
            path: Location of the network device statistics file.
            clock: Returns the capture time in milliseconds since the epoch.
        """
        super().__init__(path)
        self._clock = clock

    def sample(self) -> NetCounters:
        lines = self._read_lines()
        captured_at = self._clock()
        totals = dict.fromkeys(NET_FIELDS, 0)

        for line in lines[self.HEADER_LINES :]:
            if not line.strip():
                continue

            # Old kernels glue large rx_bytes values onto the "iface:" token
            name, separator, values = line.partition(":")
            if not separator:
                raise MalformedSource(
                    f"{self.path}: no interface name in line {line.strip()!r}"
                )
            if name.strip() == self.LOOPBACK:
                continue

            tokens = iter(values.split())
            try:
                for field in NET_FIELDS:
                    totals[field] = saturating_add(
                        totals[field], parse_required_uint(tokens)
                    )
            except MalformedSource as err:
                raise self._fail(err, line) from err

        counters = NetCounters(unix_millis=captured_at, **totals)
        logger.debug("Sampled %s: %s", self.path, counters)
        return counters


class RamSampler(FileSampler):
    """Sample /proc/meminfo, converting kibibyte values to bytes."""

    LABELS = {
        "MemTotal": "total",
        "MemFree": "free",
        "MemAvailable": "available",
        "Buffers": "buffers",
        "Cached": "cached",
        "SReclaimable": "slab_reclaimable",
        "SwapTotal": "swap_total",
        "SwapFree": "swap_free",
    }

    def sample(self) -> RamCounters:
        values = dict.fromkeys(self.LABELS.values(), 0)

        for line in self._read_lines():
            tokens = iter(line.split())
            label = next(tokens, None)
            if label is None:
                continue
            field = self.LABELS.get(label.rstrip(":"))
            if field is None:
                continue

            try:
                value = parse_required_uint(tokens)
            except MalformedSource as err:
                raise self._fail(err, line) from err

            unit = next(tokens, None)
            if unit is not None and unit.lower() != "kb":
                raise MalformedSource(f"{self.path}: unsupported unit {unit!r}")

            values[field] = saturating_mul(value, 1024)

        if values["total"] == 0:
            raise MalformedSource(f"{self.path} reports no memory")

        counters = RamCounters(**values)
        logger.debug("Sampled %s: %s", self.path, counters)
        return counters


class LineCountSampler(FileSampler):
    """
    Count the records of a connection table.

    With ``require_colon`` only lines containing a colon are counted, which
    skips the header of /proc/net/tcp and /proc/net/udp. The conntrack table
    has no header, so every line counts there.
    """

    def __init__(self, path: str | Path, require_colon: bool = True) -> None:
        super().__init__(path)
        self.require_colon = require_colon

    def sample(self) -> ConnectionCount:
        lines = self._read_lines()
        if self.require_colon:
            count = sum(1 for line in lines if ":" in line)
        else:
            count = len(lines)
        logger.debug("Sampled %s: %d records", self.path, count)
        return ConnectionCount(count=count)
