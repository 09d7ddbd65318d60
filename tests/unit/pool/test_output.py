"""Unit tests for ConsolePoolObserver."""

from io import StringIO

from rich.console import Console

from rfarm.pool import ConsolePoolObserver, FakeWorker, WorkerPoolManager


class TestConsolePoolObserver:
    def test_prints_pool_events(
        self, manager: WorkerPoolManager, console: Console, console_output: StringIO
    ) -> None:
        observer = ConsolePoolObserver(console)
        observer.attach(manager)

        worker = manager.add_worker()
        assert isinstance(worker, FakeWorker)
        worker.report_progress("frame 3/10")
        _ = manager.delete_worker(worker)

        lines = console_output.getvalue().splitlines()
        assert lines == [
            f"[worker:{worker.port}] added pid=1000 state=running",
            f"[worker:{worker.port}] updated frame 3/10",
            f"[worker:{worker.port}] deleted state=disposed",
        ]

    def test_update_without_progress_shows_state(
        self, manager: WorkerPoolManager, console: Console, console_output: StringIO
    ) -> None:
        observer = ConsolePoolObserver(console)
        observer.attach(manager)
        worker = manager.add_worker()
        assert isinstance(worker, FakeWorker)

        worker.simulate_restart()

        assert console_output.getvalue().splitlines()[-1] == (
            f"[worker:{worker.port}] updated running"
        )

    def test_detach_stops_output(
        self, manager: WorkerPoolManager, console: Console, console_output: StringIO
    ) -> None:
        observer = ConsolePoolObserver(console)
        observer.attach(manager)
        observer.detach()

        _ = manager.add_worker()

        assert console_output.getvalue() == ""
        assert len(manager.added) == 0

    def test_reattach_moves_subscription(
        self,
        manager: WorkerPoolManager,
        console: Console,
    ) -> None:
        observer = ConsolePoolObserver(console)
        observer.attach(manager)
        observer.attach(manager)

        assert len(manager.added) == 1
        assert len(manager.deleted) == 1
        assert len(manager.updated) == 1
