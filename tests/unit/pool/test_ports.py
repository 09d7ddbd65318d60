"""Unit tests for PortAllocator."""

import random

from pytest_mock import MockerFixture

from rfarm.config import PortRange
from rfarm.pool import PortAllocator


class TestPortAllocator:
    def test_allocates_inside_range(self) -> None:
        allocator = PortAllocator(PortRange(9000, 9010), rng=random.Random(1))

        for _ in range(50):
            assert 9000 <= allocator.allocate(set()) < 9010

    def test_skips_ports_in_use(self) -> None:
        allocator = PortAllocator(PortRange(9000, 9003), rng=random.Random(7))
        in_use = {9000, 9002}

        for _ in range(20):
            assert allocator.allocate(in_use) == 9001

    def test_last_free_port_is_found(self) -> None:
        allocator = PortAllocator(PortRange(1, 101), rng=random.Random(3))
        in_use = set(range(1, 101)) - {42}

        assert allocator.allocate(in_use) == 42

    def test_accepts_mapping_of_ports(self) -> None:
        allocator = PortAllocator(PortRange(9000, 9002), rng=random.Random(0))

        assert allocator.allocate({9000: object()}) == 9001

    def test_retries_until_free(self, mocker: MockerFixture) -> None:
        rng = mocker.MagicMock(spec=random.Random)
        rng.randrange.side_effect = [9000, 9000, 9001]
        logger = mocker.MagicMock()
        allocator = PortAllocator(PortRange(9000, 9010), rng=rng, logger=logger)

        assert allocator.allocate({9000}) == 9001
        assert rng.randrange.call_count == 3
        rng.randrange.assert_called_with(9000, 9010)
        logger.debug.assert_called_once_with("port_allocated", port=9001, attempts=3)
