"""Shared fixtures: a fake procfs tree and a controllable clock."""

from pathlib import Path

import pytest

from serverstatus.config import StatusConfig

NET_DEV_HEADER = (
    "Inter-|   Receive                                                |  Transmit\n"
    " face |bytes    packets errs drop fifo frame compressed multicast"
    "|bytes    packets errs drop fifo colls carrier compressed\n"
)

TCP_HEADER = (
    "  sl  local_address rem_address   st tx_queue rx_queue tr tm->when "
    "retrnsmt   uid  timeout inode\n"
)

TCP_LINE = (
    "   {index}: 0100007F:0277 00000000:0000 0A 00000000:00000000 00:00000000 "
    "00000000     0        0 {inode} 1 0000000000000000 100 0 0 10 0\n"
)

CONNTRACK_LINE = (
    "ipv4     2 tcp      6 431999 ESTABLISHED src=10.0.0.2 dst=10.0.0.1 "
    "sport=51234 dport=22 src=10.0.0.1 dst=10.0.0.2 sport=22 dport=51234 "
    "[ASSURED] mark=0 zone=0 use=2\n"
)


def net_dev_line(name: str, rx_bytes: int = 0, tx_bytes: int = 0, **fields: int) -> str:
    """Build one interface line of /proc/net/dev."""
    values = [rx_bytes, fields.get("rx_packets", 0), 0, 0, 0, 0, 0, 0]
    values += [tx_bytes, fields.get("tx_packets", 0), 0, 0, 0, 0, 0, 0]
    return f"{name:>6}: " + " ".join(str(value) for value in values) + "\n"


def meminfo(
    total: int = 1000000,
    free: int = 400000,
    buffers: int = 0,
    cached: int = 100000,
    slab_reclaimable: int = 0,
    swap_total: int = 0,
    swap_free: int = 0,
) -> str:
    """Build a /proc/meminfo body, values in kB."""
    return (
        f"MemTotal:       {total} kB\n"
        f"MemFree:        {free} kB\n"
        f"MemAvailable:   {free + cached} kB\n"
        f"Buffers:        {buffers} kB\n"
        f"Cached:         {cached} kB\n"
        f"SwapCached:     0 kB\n"
        f"Active:         12345 kB\n"
        f"SReclaimable:   {slab_reclaimable} kB\n"
        f"SwapTotal:      {swap_total} kB\n"
        f"SwapFree:       {swap_free} kB\n"
        f"HugePages_Total:       0\n"
    )


class FakeProc:
    """A procfs tree under a temporary directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        (root / "net").mkdir(parents=True, exist_ok=True)

    def write(self, relative: str, content: str) -> Path:
        path = self.root / relative
        path.write_text(content)
        return path

    def remove(self, relative: str) -> None:
        (self.root / relative).unlink()

    def set_cpu(self, *fields: int | str) -> None:
        line = "cpu  " + " ".join(str(field) for field in fields)
        self.write("stat", line + "\ncpu0 1 2 3 4 5 6 7 8 9 10\nctxt 12345\n")

    def set_net(self, *interface_lines: str) -> None:
        self.write("net/dev", NET_DEV_HEADER + "".join(interface_lines))

    def set_tcp(self, count: int) -> None:
        lines = [TCP_LINE.format(index=i, inode=1000 + i) for i in range(count)]
        self.write("net/tcp", TCP_HEADER + "".join(lines))

    def set_udp(self, count: int) -> None:
        lines = [TCP_LINE.format(index=i, inode=2000 + i) for i in range(count)]
        self.write("net/udp", TCP_HEADER + "".join(lines))

    def set_conntrack(self, count: int) -> None:
        self.write("net/nf_conntrack", CONNTRACK_LINE * count)

    def populate(self) -> None:
        """Write a valid source for every domain."""
        self.set_cpu(100, 0, 50, 800, 10, 5, 5, 30, 0, 0)
        self.set_net(net_dev_line("lo", 500, 500), net_dev_line("eth0", 1000, 2000))
        self.write("meminfo", meminfo())
        self.set_tcp(3)
        self.set_udp(2)
        self.set_conntrack(4)


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProc:
    """Fake procfs with valid content for every domain."""
    proc = FakeProc(tmp_path / "proc")
    proc.populate()
    return proc


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config(fake_proc: FakeProc) -> StatusConfig:
    """Configuration with every domain enabled, reading the fake procfs."""
    return StatusConfig(procfs_path=str(fake_proc.root))
