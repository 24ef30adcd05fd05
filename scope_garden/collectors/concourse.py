from __future__ import annotations
import logging
from typing import Iterator, Optional
from urllib.parse import quote

import httpx

from ..config import CFG
from ..models import CIContainer
from .directory import Directory, NoopDirectory, SourceError

log = logging.getLogger(__name__)

class ConcourseError(SourceError):
    pass

def ci_container_from(data: dict) -> CIContainer:
    return CIContainer(
        id=str(data.get("id") or ""),
        build_name=str(data.get("build_name") or ""),
        pipeline_name=str(data.get("pipeline_name") or ""),
        job_name=str(data.get("job_name") or ""),
        type=str(data.get("type") or ""),
        step_name=str(data.get("step_name") or ""),
    )

class ConcourseClient:
    def __init__(self, url: str, team: str = "main", token: str = "", skip_ssl_verify: bool = False,
                 timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None):
        self.team = team
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = token if " " in token else f"Bearer {token}"
        self.http = httpx.Client(base_url=url.rstrip("/"), headers=headers, timeout=timeout,
                                 verify=not skip_ssl_verify, transport=transport)

    def list(self) -> Iterator[CIContainer]:
        path = f"/api/v1/teams/{quote(self.team, safe='')}/containers"
        try:
            resp = self.http.get(path)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise ConcourseError(f"error fetching Concourse containers: {e}") from e
        except ValueError as e:
            raise ConcourseError(f"error decoding Concourse containers: {e}") from e
        for item in data or []:
            c = ci_container_from(item)
            if c.id:
                yield c

    def close(self):
        self.http.close()

def new_ci_directory(cfg: CFG, autostart: bool = True):
    if not cfg.concourse_url:
        log.info("Concourse URL not set, skipping CI container lookup")
        return NoopDirectory("concourse")
    client = ConcourseClient(cfg.concourse_url, cfg.concourse_team, cfg.concourse_token,
                             cfg.concourse_skip_ssl_verify, cfg.http_timeout)
    return Directory(client.list, cfg.concourse_refresh_interval, key=lambda c: c.id,
                     name="concourse", autostart=autostart)
