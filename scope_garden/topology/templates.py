from __future__ import annotations

CF_CONTAINER_NETWORK = "cf-container-network"

CONTAINER_TOPOLOGY = "container"
CONTAINER_IMAGE_TOPOLOGY = "container_image"
HOST_TOPOLOGY = "host"

CONTAINER_ID = "garden_container_id"
CONTAINER_PATH = "garden_container_path"
CONTAINER_IP = "garden_container_ip"
CONTAINER_HOST_IP = "garden_container_host_ip"
CONTAINER_EXTERNAL_IP = "garden_container_external_ip"
CONTAINER_STATE = "garden_container_state"
CONTAINER_PROPERTIES_PREFIX = "garden_container_properties_"
CONTAINER_EVENTS_PREFIX = "garden_container_events_"
CONTAINER_PROCESSES_PREFIX = "garden_container_processes_"
CONCOURSE_PREFIX = "concourse_"
CF_PREFIX = "cf_"

DOCKER_CONTAINER_HOSTNAME = "docker_container_hostname"
DOCKER_CONTAINER_NAME = "docker_container_name"
DOCKER_CONTAINER_IPS_SCOPES = "docker_container_ips_with_scopes"
DOCKER_CONTAINER_IPS = "docker_container_ips"
DOCKER_CONTAINER_NETWORKS = "docker_container_networks"
DOCKER_IMAGE_ID = "docker_image_id"
DOCKER_IMAGE_NAME = "docker_image_name"
HOST_NODE_ID = "host_node_id"

CF_APP_NAME = "cf_app_name"
CF_APP_GUID = "cf_app_guid"
CF_ORG_GUID = "cf_org_guid"
CF_SPACE_GUID = "cf_space_guid"

# garden container properties set by Diego for CF app instances
CF_PROPERTY_KEYS = {
    CF_APP_GUID: "network.app_id",
    CF_ORG_GUID: "network.org_id",
    CF_SPACE_GUID: "network.space_id",
}

CPU_USAGE = "garden_cpu_total_usage"
MEMORY_USAGE = "garden_memory_usage"
DISK_USAGE = "garden_disk_usage"
NETWORK_RX = "garden_network_rx"
NETWORK_TX = "garden_network_tx"

UNRESOLVED_IMAGE = "garden"

PLUGIN_SPEC = {
    "id": "garden",
    "label": "garden",
    "description": "Reports on Garden containers running on the host",
    "interfaces": ["reporter"],
    "api_version": "1",
}

def _meta(id_: str, label: str, priority: int) -> dict:
    return {"id": id_, "label": label, "priority": priority, "from": "latest"}

def _metric(id_: str, label: str, fmt: str, priority: int) -> dict:
    return {"id": id_, "label": label, "format": fmt, "priority": priority}

def _table(prefix: str, label: str) -> dict:
    return {"id": prefix, "label": label, "prefix": prefix}

CONTAINER_METADATA_TEMPLATES = {
    CONTAINER_ID:          _meta(CONTAINER_ID, "ID", 1),
    CONTAINER_PATH:        _meta(CONTAINER_PATH, "Path", 2),
    CONTAINER_STATE:       _meta(CONTAINER_STATE, "State", 3),
    CONTAINER_IP:          _meta(CONTAINER_IP, "Container IP", 4),
    CONTAINER_HOST_IP:     _meta(CONTAINER_HOST_IP, "Host IP", 5),
    CONTAINER_EXTERNAL_IP: _meta(CONTAINER_EXTERNAL_IP, "External IP", 6),
}

CONTAINER_METRIC_TEMPLATES = {
    CPU_USAGE:    _metric(CPU_USAGE, "CPU Usage", "", 3),
    MEMORY_USAGE: _metric(MEMORY_USAGE, "Memory", "filesize", 4),
    DISK_USAGE:   _metric(DISK_USAGE, "Disk Usage", "filesize", 5),
    NETWORK_RX:   _metric(NETWORK_RX, "Network RX", "filesize", 6),
    NETWORK_TX:   _metric(NETWORK_TX, "Network TX", "filesize", 7),
}

CONTAINER_TABLE_TEMPLATES = {
    CONTAINER_PROPERTIES_PREFIX: _table(CONTAINER_PROPERTIES_PREFIX, "Properties"),
    CONTAINER_EVENTS_PREFIX:     _table(CONTAINER_EVENTS_PREFIX, "Events"),
    CONTAINER_PROCESSES_PREFIX:  _table(CONTAINER_PROCESSES_PREFIX, "Processes"),
    CONCOURSE_PREFIX:            _table(CONCOURSE_PREFIX, "Concourse"),
    CF_PREFIX:                   _table(CF_PREFIX, "Cloud Foundry"),
}

CONTAINER_IMAGE_METADATA_TEMPLATES: dict = {}

CONTAINER_IMAGE_TABLE_TEMPLATES = {
    CONCOURSE_PREFIX: _table(CONCOURSE_PREFIX, "Concourse"),
    CF_PREFIX:        _table(CF_PREFIX, "Cloud Foundry"),
}
