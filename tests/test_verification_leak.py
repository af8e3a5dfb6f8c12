"""Verification Test: Memory Leak Check.

Repeated update cycles must not accumulate memory: each domain keeps exactly
two snapshots, and superseded snapshots are dropped.
"""

import gc

import psutil

from conftest import net_dev_line
from serverstatus.status import ServerStatus


def get_current_memory_mb() -> float:
    """Get current process memory usage in MB."""
    process = psutil.Process()
    return process.memory_info().rss / (1024 * 1024)


class TestMemoryLeakCheck:
    """Memory leak verification suite tests."""

    def test_update_memory_stability(self, fake_proc, config, clock):
        """
        Test that thousands of update cycles do not grow memory.

        Counters are changed every cycle so every update produces distinct
        snapshots that must be released once superseded.
        """
        status = ServerStatus(config, clock=clock)

        # Warm up allocator pools and caches before measuring
        for i in range(200):
            fake_proc.set_net(net_dev_line("eth0", i * 1000, i * 500))
            clock.advance(1000)
            status.update()

        gc.collect()
        initial_memory = get_current_memory_mb()

        cycles = 3000
        for i in range(200, 200 + cycles):
            fake_proc.set_net(net_dev_line("eth0", i * 1000, i * 500))
            clock.advance(1000)
            status.update()
            assert status.net_reception_bandwidth() == 1000

        gc.collect()
        final_memory = get_current_memory_mb()
        memory_delta = final_memory - initial_memory

        # Allow small increase due to Python runtime variations
        max_delta_mb = 2.0

        assert memory_delta < max_delta_mb, (
            f"Memory increased by {memory_delta:.2f}MB, "
            f"expected < {max_delta_mb}MB over {cycles} updates"
        )

    def test_only_two_snapshots_retained(self, fake_proc, config, clock):
        """Test each domain holds just its old and new snapshot."""
        status = ServerStatus(config, clock=clock)

        for i in range(5):
            fake_proc.set_tcp(i)
            status.update()

        for domain_state in status._domains.values():
            assert domain_state.state.old is not None
            assert domain_state.state.new is not None
            assert domain_state.state.__slots__ == ("old", "new")
