import stat
import sys
from collections.abc import Callable
from pathlib import Path

import pytest


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


WORKER_SCRIPT = """\
import sys
import time

args = dict(zip(sys.argv[1::2], sys.argv[2::2]))
print(
    "ready port=%s bind=%s controller=%s"
    % (args["--port"], args["--bind"], args["--controller"]),
    flush=True,
)
for frame in range(1, {frames} + 1):
    print("frame %d" % frame, flush=True)
    time.sleep(0.05)
time.sleep({linger})
"""


@pytest.fixture
def make_worker_script(tmp_path: Path) -> Callable[..., Path]:
    """Write an executable fake render worker.

    The script prints a ready line with its arguments, then ``frames``
    progress lines, then stays silent for ``linger`` seconds and exits.
    """
    if sys.platform == "win32":
        pytest.skip("worker scripts rely on a shebang line")

    def _make(*, frames: int = 3, linger: float = 30.0) -> Path:
        script = tmp_path / f"worker-{frames}-{linger}.py"
        body = WORKER_SCRIPT.format(frames=frames, linger=linger)
        script.write_text(f"#!{sys.executable}\n{body}")
        script.chmod(script.stat().st_mode | stat.S_IXUSR)
        return script

    return _make


FORKING_WORKER_SCRIPT = """\
#!/bin/sh
echo ready
sleep 20 &
exec sleep 30
"""


@pytest.fixture
def make_forking_worker_script(tmp_path: Path) -> Callable[[], Path]:
    """Write a shell worker that leaves a background child sharing its stdout."""
    if sys.platform == "win32":
        pytest.skip("worker scripts rely on a shebang line")

    def _make() -> Path:
        script = tmp_path / "forking-worker.sh"
        script.write_text(FORKING_WORKER_SCRIPT)
        script.chmod(script.stat().st_mode | stat.S_IXUSR)
        return script

    return _make
