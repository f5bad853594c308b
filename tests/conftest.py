import pytest

from cutover_automation.cluster import Cluster, SegConfig


def seg(dbid, content_id, role, hostname, port, data_dir):
    return SegConfig(dbid=dbid, content_id=content_id, role=role, hostname=hostname, port=port, data_dir=data_dir)


@pytest.fixture
def intermediate() -> Cluster:
    return Cluster.from_segments(
        [
            seg(1, -1, "p", "cdw", 5432, "/data/qddir/demoDataDir.int-1"),
            seg(10, -1, "m", "scdw", 5433, "/data/standby.int"),
            seg(2, 0, "p", "sdw1", 40000, "/data/primary/gpseg.int0"),
            seg(3, 1, "p", "sdw2", 40001, "/data/primary/gpseg.int1"),
            seg(4, 0, "m", "sdw2", 41000, "/data/mirror/gpseg.int0"),
            seg(5, 1, "m", "sdw1", 41001, "/data/mirror/gpseg.int1"),
        ]
    )


@pytest.fixture
def target() -> Cluster:
    return Cluster.from_segments(
        [
            seg(1, -1, "p", "cdw", 6432, "/data/qddir/demoDataDir-1"),
            seg(10, -1, "m", "scdw", 6433, "/data/standby"),
            seg(2, 0, "p", "sdw1", 50000, "/data/primary/gpseg0"),
            seg(3, 1, "p", "sdw2", 50001, "/data/primary/gpseg1"),
            seg(4, 0, "m", "sdw2", 51000, "/data/mirror/gpseg0"),
            seg(5, 1, "m", "sdw1", 51001, "/data/mirror/gpseg1"),
        ]
    )
