"""Assemble a Scope plugin report from container snapshots and name lookups.

Node ids follow Scope's conventions: ``<handle>;<container>`` for containers,
``<image>;<container_image>`` for images and ``<hostname>;<host>`` for the
parent host. All free-form metadata is flattened into ``latest`` under a
prefix (``garden_container_properties_<key>``, ``..._events_<n>``,
``..._processes_<n>``) so the table templates can pick it up by prefix.
"""
from __future__ import annotations
import copy, logging, random
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Tuple

from ..models import CIContainer, ContainerSnapshot
from . import templates as t

log = logging.getLogger(__name__)

MIB = 1024 * 1024
NS_PER_SECOND = 1_000_000_000

def timestamp(now: datetime) -> str:
    return now.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")

def container_node_id(handle: str) -> str:
    return f"{handle};<{t.CONTAINER_TOPOLOGY}>"

def image_node_id(image: str) -> str:
    return f"{image};<{t.CONTAINER_IMAGE_TOPOLOGY}>"

def host_node_id(hostname: str) -> str:
    return f"{hostname};<{t.HOST_TOPOLOGY}>"

def new_report(report_id: Optional[str] = None) -> dict:
    return {
        "ID": report_id or str(random.getrandbits(63)),
        "Plugins": [copy.deepcopy(t.PLUGIN_SPEC)],
        "Container": {
            "label": "container",
            "label_plural": "containers",
            "shape": "hexagon",
            "metadata_templates": copy.deepcopy(t.CONTAINER_METADATA_TEMPLATES),
            "metric_templates": copy.deepcopy(t.CONTAINER_METRIC_TEMPLATES),
            "table_templates": copy.deepcopy(t.CONTAINER_TABLE_TEMPLATES),
            "nodes": {},
        },
        "ContainerImage": {
            "label": "image",
            "label_plural": "images",
            "shape": "hexagon",
            "metadata_templates": copy.deepcopy(t.CONTAINER_IMAGE_METADATA_TEMPLATES),
            "table_templates": copy.deepcopy(t.CONTAINER_IMAGE_TABLE_TEMPLATES),
            "nodes": {},
        },
    }

class ReportBuilder:
    def __init__(self, hostname: str, app_lookup, ci_lookup,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.hostname = hostname
        self.app_lookup = app_lookup
        self.ci_lookup = ci_lookup
        self.clock = clock

    def build(self, containers: Iterable[ContainerSnapshot], report_id: Optional[str] = None) -> dict:
        now = timestamp(self.clock())
        report = new_report(report_id)
        for c in containers:
            node, image = self.container_nodes(c, now)
            # image ids are shared between containers of one step/app; last one wins
            report["ContainerImage"]["nodes"][image["id"]] = image
            report["Container"]["nodes"][node["id"]] = node
        log.debug("built report %s: %d containers, %d images", report["ID"],
                  len(report["Container"]["nodes"]), len(report["ContainerImage"]["nodes"]))
        return report

    def resolve(self, c: ContainerSnapshot) -> Tuple[str, str, dict]:
        """Container name, image id and extra latest fields for c."""
        extra: dict = {}
        for key, prop in t.CF_PROPERTY_KEYS.items():
            if c.properties.get(prop):
                extra[key] = c.properties[prop]

        ci, found = self.ci_lookup.lookup(c.id)
        if found and ci.step_name:
            extra.update(ci_fields(ci))
            return f"{ci.step_name}/{c.id[:5]}", ci.step_name, extra

        app_guid = extra.get(t.CF_APP_GUID)
        if app_guid:
            app, found = self.app_lookup.lookup(app_guid)
            if found and app.name:
                extra[t.CF_APP_NAME] = app.name
                return app.name, app.name, extra

        return c.id, t.UNRESOLVED_IMAGE, extra

    def container_nodes(self, c: ContainerSnapshot, now: str) -> Tuple[dict, dict]:
        host = host_node_id(self.hostname)
        name, image, extra = self.resolve(c)

        latest = {
            t.DOCKER_CONTAINER_HOSTNAME: self.hostname,
            t.CONTAINER_ID: c.id,
            t.CONTAINER_PATH: c.path,
            t.CONTAINER_STATE: c.state,
            t.CONTAINER_IP: c.container_ip,
            t.CONTAINER_HOST_IP: c.host_ip,
            t.CONTAINER_EXTERNAL_IP: c.external_ip,
        }
        for k, v in c.properties.items():
            latest[f"{t.CONTAINER_PROPERTIES_PREFIX}{k}"] = v
        for i, ev in enumerate(c.events):
            latest[f"{t.CONTAINER_EVENTS_PREFIX}{i}"] = ev
        for i, pid in enumerate(c.process_ids):
            latest[f"{t.CONTAINER_PROCESSES_PREFIX}{i}"] = pid
        latest.update(extra)
        latest[t.DOCKER_CONTAINER_NAME] = name
        latest[t.DOCKER_IMAGE_ID] = image

        image_id = image_node_id(image)
        node = {
            "id": container_node_id(c.id),
            "topology": t.CONTAINER_TOPOLOGY,
            "latest": {k: latest_entry(v, now) for k, v in latest.items()},
            "metrics": container_metrics(c, now),
            "sets": {
                t.DOCKER_CONTAINER_IPS_SCOPES: [f";{c.container_ip}"],
                t.DOCKER_CONTAINER_IPS: [c.container_ip],
                t.DOCKER_CONTAINER_NETWORKS: [t.CF_CONTAINER_NETWORK],
            },
            "parents": {
                t.HOST_TOPOLOGY: [host],
                t.CONTAINER_IMAGE_TOPOLOGY: [image_id],
            },
        }

        image_latest = {
            t.DOCKER_IMAGE_ID: image,
            t.DOCKER_IMAGE_NAME: image,
            t.HOST_NODE_ID: host,
        }
        image_latest.update({k: v for k, v in extra.items()
                             if k.startswith((t.CONCOURSE_PREFIX, t.CF_PREFIX))})
        image_node = {
            "id": image_id,
            "topology": t.CONTAINER_IMAGE_TOPOLOGY,
            "latest": {k: latest_entry(v, now) for k, v in image_latest.items()},
            "parents": {t.HOST_TOPOLOGY: [host]},
        }
        return node, image_node

def ci_fields(ci: CIContainer) -> dict:
    return {
        f"{t.CONCOURSE_PREFIX}build number": ci.build_name,
        f"{t.CONCOURSE_PREFIX}pipeline": ci.pipeline_name,
        f"{t.CONCOURSE_PREFIX}job": ci.job_name,
        f"{t.CONCOURSE_PREFIX}type": ci.type,
    }

def latest_entry(value: str, now: str) -> dict:
    return {"timestamp": now, "value": value}

def metric(value: float, now: str) -> dict:
    return {
        "samples": [{"date": now, "value": value}],
        "min": 0.0,
        "max": value,
        "first": now,
        "last": now,
    }

def container_metrics(c: ContainerSnapshot, now: str) -> dict:
    m = c.metrics
    return {
        t.CPU_USAGE: metric(m.cpu_usage / NS_PER_SECOND, now),
        # whole MiB scaled to the unit the scope UI's filesize formatter expects
        t.MEMORY_USAGE: metric(float((m.memory_usage // MIB) * 1_000_000), now),
        t.DISK_USAGE: metric(float(m.disk_usage), now),
        t.NETWORK_RX: metric(float(m.network_rx), now),
        t.NETWORK_TX: metric(float(m.network_tx), now),
    }

def build_report(containers: Iterable[ContainerSnapshot], hostname: str, app_lookup, ci_lookup,
                 now: Optional[datetime] = None, report_id: Optional[str] = None) -> dict:
    clock = (lambda: now) if now is not None else (lambda: datetime.now(timezone.utc))
    return ReportBuilder(hostname, app_lookup, ci_lookup, clock).build(containers, report_id)
