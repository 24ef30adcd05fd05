from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

@dataclass(frozen=True)
class ContainerMetrics:
    cpu_usage: int = 0       # ns
    memory_usage: int = 0    # bytes toward limit
    disk_usage: int = 0
    network_rx: int = 0
    network_tx: int = 0

@dataclass(frozen=True)
class ContainerSnapshot:
    id: str
    path: str = ""
    state: str = ""
    container_ip: str = ""
    host_ip: str = ""
    external_ip: str = ""
    properties: Mapping[str, str] = field(default_factory=dict)
    events: Tuple[str, ...] = ()
    process_ids: Tuple[str, ...] = ()
    metrics: ContainerMetrics = field(default_factory=ContainerMetrics)

    def __post_init__(self):
        # freeze the containers too, snapshots are shared between threads
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))
        object.__setattr__(self, "events", tuple(self.events))
        object.__setattr__(self, "process_ids", tuple(self.process_ids))

@dataclass(frozen=True)
class CIContainer:
    id: str
    build_name: str = ""
    pipeline_name: str = ""
    job_name: str = ""
    type: str = ""
    step_name: str = ""

@dataclass(frozen=True)
class AppRecord:
    guid: str
    name: str
