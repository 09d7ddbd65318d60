"""Shared test fixtures for RFarm tests."""

from collections.abc import Callable
from io import StringIO
from itertools import count
from pathlib import Path
from typing import TypeAlias

import pytest
from rich.console import Console

from rfarm.config import MemorySettingsStore, PoolConfig
from rfarm.pool import FakeLauncher, FakeWorker, WorkerPoolManager, WorkerSpec

LOCAL_IP = "10.0.0.5"


@pytest.fixture
def pool_config() -> PoolConfig:
    """Pool config with a small port range and a literal controller IP."""
    return PoolConfig(
        controller_host="192.168.1.10",
        worker_port_range="9000-9010",
        unresponsive_timeout=1.0,
    )


@pytest.fixture
def settings() -> MemorySettingsStore:
    return MemorySettingsStore()


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def fake_workers() -> list[FakeWorker]:
    """Every FakeWorker built by the fake_worker_factory fixture, in order."""
    return []


@pytest.fixture
def fake_worker_factory(
    fake_workers: list[FakeWorker],
) -> Callable[[WorkerSpec], FakeWorker]:
    """Worker factory that builds FakeWorkers with increasing pids."""
    pids = count(1000)

    def _factory(spec: WorkerSpec) -> FakeWorker:
        worker = FakeWorker(spec, auto_pid=next(pids))
        fake_workers.append(worker)
        return worker

    return _factory


@pytest.fixture
def manager(
    pool_config: PoolConfig,
    settings: MemorySettingsStore,
    launcher: FakeLauncher,
    fake_worker_factory: Callable[[WorkerSpec], FakeWorker],
) -> WorkerPoolManager:
    """Pool manager wired to fakes; no processes are spawned."""
    return WorkerPoolManager(
        pool_config,
        settings,
        worker_factory=fake_worker_factory,
        launcher=launcher,
        local_ip=lambda: LOCAL_IP,
    )


@pytest.fixture
def console_output() -> StringIO:
    return StringIO()


@pytest.fixture
def console(console_output: StringIO) -> Console:
    """Plain, wide console writing to console_output."""
    return Console(file=console_output, width=200, color_system=None, force_terminal=False)


def make_spec(port: int = 9001, **overrides: object) -> WorkerSpec:
    """Build a WorkerSpec with test defaults."""
    values: dict[str, object] = {
        "port": port,
        "bind_address": LOCAL_IP,
        "controller_address": "192.168.1.10",
        "executable": Path("worker"),
        "working_dir": Path(),
        "unresponsive_timeout": 1.0,
    }
    values.update(overrides)
    return WorkerSpec(**values)  # pyright: ignore[reportArgumentType]


SpecFactory: TypeAlias = Callable[..., WorkerSpec]


@pytest.fixture
def spec_factory() -> SpecFactory:
    return make_spec
