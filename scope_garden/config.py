"""Settings: defaults < config file < environment < command line flags.

Each field is read from the environment variable of the same name in upper
case (GARDEN_ADDR, CF_REFRESH_INTERVAL, ...). Empty variables count as unset.
"""
from __future__ import annotations
import json, logging, re, socket
from pathlib import Path
from typing import Any, Dict, Literal, Optional
from .utils.path import to_abs_path

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)

DURATION_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ms|h|m|s)")
DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}

def parse_duration(v: Any) -> float:
    """Seconds from a number or a Go-style duration ('500ms', '3s', '1m30s')."""
    if isinstance(v, bool):
        raise ValueError(f"invalid duration {v!r}")
    if isinstance(v, (int, float)):
        if v < 0:
            raise ValueError(f"negative duration {v!r}")
        return float(v)
    s = str(v).strip()
    if s.startswith("-"):
        raise ValueError(f"negative duration {v!r}")
    try:
        return float(s)
    except ValueError:
        pass
    pos, total = 0, 0.0
    for m in DURATION_RE.finditer(s):
        if m.start() != pos:
            break
        total += float(m.group(1)) * DURATION_UNITS[m.group(2)]
        pos = m.end()
    if not s or pos != len(s):
        raise ValueError(f"invalid duration {v!r}")
    return total

class CFG(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", env_ignore_empty=True)

    garden_network: Literal["unix", "tcp"] = "unix"
    garden_addr: str = "/tmp/garden.sock"
    garden_refresh_interval: float = Field(3.0, gt=0)
    cf_api_url: str = ""
    cf_token: str = ""
    cf_skip_ssl_verify: bool = False
    cf_refresh_interval: float = Field(3.0, gt=0)
    concourse_url: str = ""
    concourse_team: str = "main"
    concourse_token: str = ""
    concourse_skip_ssl_verify: bool = False
    concourse_refresh_interval: float = Field(3.0, gt=0)
    report_interval: float = Field(0.0, ge=0)     # 0 = build per request
    plugins_root: str = "/var/run/scope/plugins"
    hostname: str = Field(default_factory=socket.gethostname)
    http_timeout: float = Field(10.0, gt=0)
    log_level: str = "INFO"

    @field_validator("garden_refresh_interval", "cf_refresh_interval", "concourse_refresh_interval",
                     "report_interval", "http_timeout", mode="before")
    @classmethod
    def _duration(cls, v: Any) -> float:
        return parse_duration(v)

    @property
    def socket_path(self) -> Path:
        return Path(self.plugins_root) / "garden" / "garden.sock"

# field -> command line flag (also accepted as a config file key)
FLAGS = {
    "garden_network":             "garden.network",
    "garden_addr":                "garden.addr",
    "garden_refresh_interval":    "garden.refresh-interval",
    "cf_api_url":                 "cf.api-url",
    "cf_token":                   "cf.token",
    "cf_skip_ssl_verify":         "cf.skip-ssl-verify",
    "cf_refresh_interval":        "cf.refresh-interval",
    "concourse_url":              "concourse.url",
    "concourse_team":             "concourse.team",
    "concourse_token":            "concourse.token",
    "concourse_skip_ssl_verify":  "concourse.skip-ssl-verify",
    "concourse_refresh_interval": "concourse.refresh-interval",
    "report_interval":            "report-interval",
    "plugins_root":               "plugins-root",
    "hostname":                   "hostname",
    "http_timeout":               "http-timeout",
    "log_level":                  "log-level",
}

def env_var(name: str) -> str:
    return name.upper()

def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Read a YAML or JSON mapping of CFG field names to values."""
    if not path:
        return {}
    p = to_abs_path(path)
    if not p or not p.exists():
        raise FileNotFoundError(f"config file not found: {path}")
    txt = p.read_text(encoding="utf-8")
    data = yaml.safe_load(txt) if p.suffix in (".yaml", ".yml") else json.loads(txt)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"config file {p} must contain a mapping")
    # accept both cf_api_url and cf.api-url style keys
    by_flag = {flag: name for name, flag in FLAGS.items()}
    out = {}
    for k, v in data.items():
        name = by_flag.get(k, str(k).replace("-", "_").replace(".", "_"))
        if name not in FLAGS:
            log.warning("ignoring unknown config key %r in %s", k, p)
            continue
        out[name] = v
    return out

def load_cfg(args=None) -> CFG:
    """Build the settings; raises pydantic's ValidationError on bad values."""
    flags = {}
    if args is not None:
        flags = {n: getattr(args, flag) for n, flag in FLAGS.items() if getattr(args, flag, None) is not None}
    from_file = load_config_file(getattr(args, "config", None))
    if not from_file:
        return CFG(**flags)
    # init kwargs beat the environment, so only pass file values nothing else set
    env_and_flags = CFG(**flags).model_fields_set
    return CFG(**{k: v for k, v in from_file.items() if k not in env_and_flags}, **flags)
