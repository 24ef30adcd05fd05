from __future__ import annotations
import logging
from typing import Any, Callable, Optional
from urllib.parse import quote

import httpx

from ..models import ContainerMetrics, ContainerSnapshot
from .directory import Directory, SourceError

log = logging.getLogger(__name__)

class GardenError(SourceError):
    pass

def _transport_for(network: str, addr: str) -> tuple[Optional[httpx.HTTPTransport], str]:
    if network == "unix":
        return httpx.HTTPTransport(uds=addr), "http://garden"
    if network == "tcp":
        base = addr if addr.startswith(("http://", "https://")) else f"http://{addr}"
        return None, base
    raise ValueError(f"unsupported garden network {network!r} (expected unix or tcp)")

class GardenClient:
    """Minimal client for the Garden REST API."""

    def __init__(self, network: str = "unix", addr: str = "/tmp/garden.sock",
                 timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None):
        default_transport, base_url = _transport_for(network, addr)
        self.http = httpx.Client(base_url=base_url, timeout=timeout,
                                 transport=transport or default_transport)

    def _get(self, path: str) -> Any:
        try:
            resp = self.http.get(path)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            raise GardenError(f"GET {path}: {e}") from e
        except ValueError as e:
            raise GardenError(f"GET {path}: invalid JSON: {e}") from e

    def list(self) -> list["GardenContainer"]:
        data = self._get("/containers")
        handles = (data or {}).get("Handles") or []
        return [GardenContainer(self, h) for h in handles]

    def info(self, handle: str) -> dict:
        return self._get(f"/containers/{quote(handle, safe='')}/info") or {}

    def metrics(self, handle: str) -> dict:
        return self._get(f"/containers/{quote(handle, safe='')}/metrics") or {}

    def close(self):
        self.http.close()

class GardenContainer:
    def __init__(self, client: GardenClient, handle: str):
        self.client = client
        self.handle = handle

    def info(self) -> dict:
        return self.client.info(self.handle)

    def metrics(self) -> dict:
        return self.client.metrics(self.handle)

def _stat(metrics: dict, group: str, name: str) -> int:
    return int((metrics.get(group) or {}).get(name) or 0)

def snapshot_from(handle: str, info: dict, metrics: dict) -> ContainerSnapshot:
    return ContainerSnapshot(
        id=handle,
        path=info.get("ContainerPath") or "",
        state=info.get("State") or "",
        container_ip=info.get("ContainerIP") or "",
        host_ip=info.get("HostIP") or "",
        external_ip=info.get("ExternalIP") or "",
        properties={str(k): str(v) for k, v in (info.get("Properties") or {}).items()},
        events=tuple(str(e) for e in info.get("Events") or ()),
        process_ids=tuple(str(p) for p in info.get("ProcessIDs") or ()),
        metrics=ContainerMetrics(
            cpu_usage=_stat(metrics, "CPUStat", "Usage"),
            memory_usage=_stat(metrics, "MemoryStat", "TotalUsageTowardLimit"),
            disk_usage=_stat(metrics, "DiskStat", "TotalBytesUsed"),
            network_rx=_stat(metrics, "NetworkStat", "RxBytes"),
            network_tx=_stat(metrics, "NetworkStat", "TxBytes"),
        ),
    )

class Registry:
    """Container snapshots from Garden, refreshed in the background."""

    def __init__(self, source, interval: float, autostart: bool = True):
        self.source = source
        self.directory: Directory[ContainerSnapshot] = Directory(
            self._collect, interval, key=lambda c: c.id, name="garden", autostart=autostart)

    def _collect(self) -> list[ContainerSnapshot]:
        try:
            containers = self.source.list()
        except Exception as e:
            raise GardenError(f"error fetching containers: {e}") from e
        snaps = []
        for c in containers:
            try:
                snaps.append(snapshot_from(c.handle, c.info(), c.metrics()))
            except Exception as e:
                log.warning("skipping container %r: %s", c.handle, e)
        return snaps

    def refresh(self) -> bool:
        return self.directory.refresh()

    def lookup(self, handle: str):
        return self.directory.lookup(handle)

    def walk(self, visit: Callable[[ContainerSnapshot], Any]):
        for snap in self.directory.values():
            visit(snap)

    def containers(self) -> list[ContainerSnapshot]:
        return self.directory.values()

    def close(self):
        self.directory.close()
