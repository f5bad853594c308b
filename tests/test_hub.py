import threading

import pytest

from cutover_automation.errors import ErrorList, HostError
from cutover_automation.executors import CommandResult
from cutover_automation.hub import (
    execute_rpc,
    update_conf_files,
    update_internal_auto_conf_on_mirrors,
    update_postgresql_conf_on_segments,
    update_recovery_conf_on_segments,
)
from cutover_automation.connections import HostConnection
from cutover_automation.patch import Substituter
from cutover_automation.types import UpdateConfigurationReply


class RecordingConnection(HostConnection):
    def __init__(self, hostname: str, *, error: Exception | None = None):
        super().__init__(hostname)
        self.error = error
        self.requests = []

    def update_configuration(self, request):  # type: ignore[override]
        self.requests.append(request)
        if self.error:
            raise self.error
        return UpdateConfigurationReply()


class RecordingSubstituter(Substituter):
    def __init__(self):
        self.paths: list[str] = []
        self.lock = threading.Lock()

    def apply(self, path, pattern, replacement):  # type: ignore[override]
        with self.lock:
            self.paths.append(path)
        return CommandResult(["fake"], "", "", 0)


def test_execute_rpc_reaches_every_host_despite_failure() -> None:
    conns = [
        RecordingConnection("sdw1"),
        RecordingConnection("sdw2", error=ConnectionError("unreachable")),
        RecordingConnection("sdw3"),
    ]
    called: list[str] = []
    lock = threading.Lock()

    def request(conn):
        with lock:
            called.append(conn.hostname)
        conn.update_configuration(None)

    with pytest.raises(HostError) as excinfo:
        execute_rpc(conns, request)

    assert sorted(called) == ["sdw1", "sdw2", "sdw3"]
    assert excinfo.value.hostname == "sdw2"
    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert "unreachable" in str(excinfo.value)


def test_execute_rpc_aggregates_in_connection_order() -> None:
    conns = [RecordingConnection(f"sdw{i}", error=RuntimeError(f"boom {i}")) for i in range(1, 6)]
    conns.insert(2, RecordingConnection("healthy"))

    with pytest.raises(ErrorList) as excinfo:
        execute_rpc(conns, lambda conn: conn.update_configuration(None))

    assert [e.hostname for e in excinfo.value] == ["sdw1", "sdw2", "sdw3", "sdw4", "sdw5"]
    assert len(conns[2].requests) == 1


def test_execute_rpc_calls_every_host_at_once() -> None:
    conns = [RecordingConnection(f"sdw{i}") for i in range(1, 6)]
    barrier = threading.Barrier(len(conns), timeout=2)

    def request(conn):
        barrier.wait()
        conn.update_configuration(None)

    execute_rpc(conns, request)

    assert all(len(conn.requests) == 1 for conn in conns)


def test_execute_rpc_success_and_empty() -> None:
    conns = [RecordingConnection("sdw1"), RecordingConnection("sdw2")]
    execute_rpc(conns, lambda conn: conn.update_configuration(None))
    execute_rpc([], lambda conn: pytest.fail("no connections to call"))

    assert all(len(conn.requests) == 1 for conn in conns)


def test_postgresql_conf_requests_per_host(intermediate, target) -> None:
    conns = {name: RecordingConnection(name) for name in ("cdw", "scdw", "sdw1", "sdw2")}

    update_postgresql_conf_on_segments(list(conns.values()), intermediate, target)

    assert conns["cdw"].requests[0].options == []
    assert [d.path for d in conns["scdw"].requests[0].options] == ["/data/standby/postgresql.conf"]
    assert [d.path for d in conns["sdw2"].requests[0].options] == [
        "/data/mirror/gpseg0/postgresql.conf",
        "/data/primary/gpseg1/postgresql.conf",
    ]


def test_recovery_conf_requests_per_host(intermediate, target) -> None:
    conns = [RecordingConnection("scdw"), RecordingConnection("sdw1")]

    update_recovery_conf_on_segments(conns, "6.25.3", intermediate, target)

    assert [d.path for d in conns[0].requests[0].options] == ["/data/standby/recovery.conf"]
    assert [d.path for d in conns[1].requests[0].options] == ["/data/mirror/gpseg1/recovery.conf"]


def test_internal_auto_conf_skips_hosts_without_mirrors(intermediate) -> None:
    conns = [RecordingConnection("cdw"), RecordingConnection("scdw"), RecordingConnection("sdw1")]

    update_internal_auto_conf_on_mirrors(conns, intermediate)

    assert conns[0].requests == []
    assert conns[1].requests == []
    assert [d.path for d in conns[2].requests[0].options] == ["/data/mirror/gpseg.int1/internal.auto.conf"]


def test_update_conf_files_runs_all_stages(intermediate, target) -> None:
    conns = [RecordingConnection("sdw1"), RecordingConnection("sdw2")]
    substituter = RecordingSubstituter()

    update_conf_files(conns, "7.1.0", intermediate, target, substituter=substituter)

    assert substituter.paths == ["/data/qddir/demoDataDir-1/postgresql.conf"]
    assert all(len(conn.requests) == 2 for conn in conns)
    assert conns[0].requests[1].options[0].path.endswith("postgresql.auto.conf")


def test_update_conf_files_stops_after_failed_stage(intermediate, target) -> None:
    conns = [RecordingConnection("sdw1", error=RuntimeError("down")), RecordingConnection("sdw2")]

    with pytest.raises(HostError):
        update_conf_files(conns, "7.1.0", intermediate, target, substituter=RecordingSubstituter())

    assert len(conns[1].requests) == 1
