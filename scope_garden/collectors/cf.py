from __future__ import annotations
import logging
from typing import Iterator, Optional

import httpx

from ..config import CFG
from ..models import AppRecord
from .directory import Directory, NoopDirectory, SourceError

log = logging.getLogger(__name__)

class CFError(SourceError):
    pass

class CFClient:
    """Lists apps from the Cloud Foundry v2 API using a pre-issued bearer token."""

    page_size = 100

    def __init__(self, api_url: str, token: str = "", skip_ssl_verify: bool = False,
                 timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = token if " " in token else f"bearer {token}"
        self.http = httpx.Client(base_url=api_url.rstrip("/"), headers=headers, timeout=timeout,
                                 verify=not skip_ssl_verify, transport=transport)

    def list(self) -> Iterator[AppRecord]:
        url: Optional[str] = f"/v2/apps?results-per-page={self.page_size}"
        while url:
            try:
                resp = self.http.get(url)
                resp.raise_for_status()
                page = resp.json()
            except httpx.HTTPError as e:
                raise CFError(f"error fetching CF apps: {e}") from e
            except ValueError as e:
                raise CFError(f"error decoding CF apps: {e}") from e
            for res in page.get("resources") or []:
                guid = (res.get("metadata") or {}).get("guid")
                if not guid:
                    continue
                yield AppRecord(guid=guid, name=(res.get("entity") or {}).get("name") or "")
            url = page.get("next_url")

    def close(self):
        self.http.close()

def new_app_directory(cfg: CFG, autostart: bool = True):
    if not cfg.cf_api_url:
        log.info("Cloud Foundry API URL not set, skipping app lookup")
        return NoopDirectory("cf")
    client = CFClient(cfg.cf_api_url, cfg.cf_token, cfg.cf_skip_ssl_verify, cfg.http_timeout)
    return Directory(client.list, cfg.cf_refresh_interval, key=lambda a: a.guid,
                     name="cf", autostart=autostart)
