"""Shared fixtures: in-memory Garden/CF/Concourse stand-ins, no network."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from scope_garden.collectors.directory import Directory
from scope_garden.config import CFG, env_var
from scope_garden.models import AppRecord, CIContainer, ContainerMetrics, ContainerSnapshot


class FakeContainer:
    def __init__(self, handle, info=None, metrics=None, info_error=None, metrics_error=None):
        self.handle = handle
        self._info = info if info is not None else {}
        self._metrics = metrics if metrics is not None else {}
        self.info_error = info_error
        self.metrics_error = metrics_error

    def info(self):
        if self.info_error:
            raise self.info_error
        return self._info

    def metrics(self):
        if self.metrics_error:
            raise self.metrics_error
        return self._metrics


class FakeGarden:
    """ContainerSource whose container list can be swapped or made to fail."""

    def __init__(self, containers=()):
        self.containers = list(containers)
        self.error = None
        self.calls = 0

    def list(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.containers)


def static_directory(values, key, name="static"):
    d = Directory(lambda: list(values), 60, key=key, name=name, autostart=False)
    d.refresh()
    return d


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    """Keep the host's GARDEN_*, CF_*, HOSTNAME, ... out of CFG()."""
    for name in CFG.model_fields:
        monkeypatch.delenv(env_var(name), raising=False)
    return monkeypatch


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def garden_info() -> dict:
    return {
        "State": "active",
        "Events": ["oom"],
        "HostIP": "10.254.0.1",
        "ContainerIP": "10.254.0.2",
        "ExternalIP": "10.0.16.5",
        "ContainerPath": "/var/vcap/data/garden/depot/abc123",
        "ProcessIDs": ["17", "42"],
        "Properties": {"env": "prod"},
    }


@pytest.fixture
def garden_metrics() -> dict:
    return {
        "MemoryStat": {"TotalUsageTowardLimit": 256 * 1024 * 1024},
        "CPUStat": {"Usage": 500000000, "User": 300000000, "System": 200000000},
        "DiskStat": {"TotalBytesUsed": 4096},
        "NetworkStat": {"RxBytes": 100, "TxBytes": 200},
    }


@pytest.fixture
def snapshot() -> ContainerSnapshot:
    return ContainerSnapshot(
        id="abc123",
        path="/var/vcap/data/garden/depot/abc123",
        state="active",
        container_ip="10.254.0.2",
        host_ip="10.254.0.1",
        external_ip="10.0.16.5",
        properties={"env": "prod"},
        events=("oom",),
        process_ids=("17", "42"),
        metrics=ContainerMetrics(cpu_usage=500000000, memory_usage=256 * 1024 * 1024,
                                 disk_usage=4096, network_rx=100, network_tx=200),
    )


@pytest.fixture
def ci_lookup():
    return static_directory(
        [CIContainer(id="abc123", build_name="7", pipeline_name="deploy", job_name="unit",
                     type="task", step_name="build")],
        key=lambda c: c.id, name="concourse")


@pytest.fixture
def app_lookup():
    return static_directory([AppRecord(guid="app-guid-1", name="billing")],
                            key=lambda a: a.guid, name="cf")
