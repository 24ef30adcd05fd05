"""Settings layering: defaults < config file < environment < flags."""

from __future__ import annotations

import json
import socket
from pathlib import Path

import pytest
from pydantic import ValidationError

from scope_garden.config import CFG, load_cfg, load_config_file, parse_duration
from scope_garden.main import parse_args


@pytest.mark.parametrize("raw,expected", [
    ("3s", 3.0), ("500ms", 0.5), ("1m30s", 90.0), ("2h", 7200.0),
    ("2.5", 2.5), (4, 4.0), ("1.5s", 1.5), ("0", 0.0),
])
def test_parse_duration(raw, expected):
    assert parse_duration(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", ["", "3x", "s", "1s garbage", True, "-1", "-3s", " -2", -1, -0.5])
def test_parse_duration_rejects(raw):
    with pytest.raises(ValueError):
        parse_duration(raw)


def test_defaults():
    cfg = load_cfg()
    assert cfg.garden_network == "unix"
    assert cfg.garden_addr == "/tmp/garden.sock"
    assert cfg.garden_refresh_interval == 3.0
    assert cfg.report_interval == 0.0
    assert cfg.cf_skip_ssl_verify is False
    assert cfg.hostname == socket.gethostname()
    assert cfg.socket_path == Path("/var/run/scope/plugins/garden/garden.sock")


def test_environment_overrides_defaults(settings_env):
    settings_env.setenv("GARDEN_ADDR", "/var/run/garden.sock")
    settings_env.setenv("CF_REFRESH_INTERVAL", "10s")
    settings_env.setenv("CF_SKIP_SSL_VERIFY", "true")
    settings_env.setenv("HOSTNAME", "cell-7")
    cfg = load_cfg()
    assert cfg.garden_addr == "/var/run/garden.sock"
    assert cfg.cf_refresh_interval == 10.0
    assert cfg.cf_skip_ssl_verify is True
    assert cfg.hostname == "cell-7"


def test_empty_environment_value_counts_as_unset(settings_env):
    settings_env.setenv("HOSTNAME", "")
    settings_env.setenv("CONCOURSE_TEAM", "")
    cfg = load_cfg()
    assert cfg.hostname == socket.gethostname()
    assert cfg.concourse_team == "main"


def test_invalid_environment_value_is_an_error(settings_env):
    settings_env.setenv("GARDEN_REFRESH_INTERVAL", "soon")
    with pytest.raises(ValidationError, match="garden_refresh_interval"):
        load_cfg()


@pytest.mark.parametrize("var", ["GARDEN_REFRESH_INTERVAL", "CF_REFRESH_INTERVAL",
                                 "CONCOURSE_REFRESH_INTERVAL", "HTTP_TIMEOUT"])
@pytest.mark.parametrize("value", ["-1", "-5s", "0", "0s"])
def test_refresh_intervals_must_be_positive(settings_env, var, value):
    settings_env.setenv(var, value)
    with pytest.raises(ValidationError):
        load_cfg()


def test_report_interval_zero_allowed_negative_rejected(settings_env):
    assert load_cfg(parse_args(["--report-interval", "0"])).report_interval == 0.0
    with pytest.raises(ValidationError):
        load_cfg(parse_args(["--report-interval=-2s"]))
    settings_env.setenv("REPORT_INTERVAL", "-1")
    with pytest.raises(ValidationError):
        load_cfg()


def test_unknown_garden_network_is_an_error():
    with pytest.raises(ValidationError):
        load_cfg(parse_args(["--garden.network", "udp"]))


def test_flags_beat_environment_and_file(tmp_path, settings_env):
    conf = tmp_path / "garden.yml"
    conf.write_text("garden_addr: /from/file.sock\ncf.api-url: https://api.file\nconcourse_team: ops\n")
    settings_env.setenv("GARDEN_ADDR", "/from/env.sock")
    settings_env.setenv("CF_API_URL", "https://api.env")
    args = parse_args(["--config", str(conf), "--garden.addr", "/from/flag.sock",
                       "--concourse.skip-ssl-verify"])
    cfg = load_cfg(args)
    assert cfg.garden_addr == "/from/flag.sock"
    assert cfg.cf_api_url == "https://api.env"
    assert cfg.concourse_team == "ops"
    assert cfg.concourse_skip_ssl_verify is True
    assert cfg.cf_skip_ssl_verify is False


def test_bool_flag_can_switch_off_environment(settings_env):
    settings_env.setenv("CF_SKIP_SSL_VERIFY", "true")
    assert load_cfg(parse_args([])).cf_skip_ssl_verify is True
    assert load_cfg(parse_args(["--cf.skip-ssl-verify=false"])).cf_skip_ssl_verify is False
    assert load_cfg(parse_args(["--cf.skip-ssl-verify", "0"])).cf_skip_ssl_verify is False


def test_bool_flag_switches_off_file_value(tmp_path):
    conf = tmp_path / "garden.json"
    conf.write_text(json.dumps({"concourse.skip-ssl-verify": True}))
    cfg = load_cfg(parse_args(["--config", str(conf), "--concourse.skip-ssl-verify=false"]))
    assert cfg.concourse_skip_ssl_verify is False


def test_bad_bool_flag_is_an_error():
    with pytest.raises(ValidationError):
        load_cfg(parse_args(["--cf.skip-ssl-verify=maybe"]))


def test_json_config_file(tmp_path):
    conf = tmp_path / "garden.json"
    conf.write_text(json.dumps({"report_interval": "5s", "plugins-root": "/tmp/plugins", "bogus": 1}))
    values = load_config_file(str(conf))
    assert values == {"report_interval": "5s", "plugins_root": "/tmp/plugins"}
    cfg = load_cfg(parse_args(["--config", str(conf)]))
    assert cfg.report_interval == 5.0
    assert cfg.socket_path == Path("/tmp/plugins/garden/garden.sock")


def test_negative_interval_in_config_file_is_an_error(tmp_path):
    conf = tmp_path / "garden.yml"
    conf.write_text("garden.refresh-interval: -1s\n")
    with pytest.raises(ValidationError):
        load_cfg(parse_args(["--config", str(conf)]))


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config_file(str(tmp_path / "nope.yml"))


def test_bad_flag_value_is_an_error():
    with pytest.raises(ValueError):
        load_cfg(parse_args(["--garden.refresh-interval", "later"]))


def test_cfg_accepts_field_names():
    cfg = CFG(hostname="h", garden_refresh_interval="1m")
    assert cfg.hostname == "h"
    assert cfg.garden_refresh_interval == 60.0
