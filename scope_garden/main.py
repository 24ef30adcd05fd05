from __future__ import annotations
import argparse, logging, signal, threading
from werkzeug.serving import make_server

from .config import CFG, FLAGS, env_var, load_cfg
from .collectors import GardenClient, Registry, new_app_directory, new_ci_directory
from .topology import ReportBuilder, ReportCache
from .utils.net import cleanup_socket, prepare_socket, unix_url
from .web import create_app

log = logging.getLogger("scope_garden")

HELP = {
    "garden_network": "network mode for garden server (tcp, unix)",
    "garden_addr": "network address for garden server",
    "garden_refresh_interval": "interval to fetch container updates from garden",
    "cf_api_url": "CF API endpoint to be used when looking up apps",
    "cf_token": "bearer token for the CF API",
    "cf_skip_ssl_verify": "skip SSL validation when looking up apps in CF",
    "cf_refresh_interval": "interval to fetch app updates from CF",
    "concourse_url": "Concourse ATC URL to be used when looking up build containers",
    "concourse_team": "Concourse team whose containers are listed",
    "concourse_token": "bearer token for the Concourse API",
    "concourse_skip_ssl_verify": "skip SSL validation when talking to Concourse",
    "concourse_refresh_interval": "interval to fetch container updates from Concourse",
    "report_interval": "rebuild the report in the background on this interval (0 = per request)",
    "plugins_root": "root directory for scope plugin sockets",
    "hostname": "hostname as reported by scope",
    "http_timeout": "timeout for calls to garden, CF and Concourse",
    "log_level": "log level (DEBUG, INFO, WARNING, ERROR)",
}

def parse_args(argv=None):
    ap = argparse.ArgumentParser(description='Weave Scope plugin reporting on Garden containers')
    ap.add_argument('--config', type=str, default=None, help='YAML or JSON file with settings')
    for name, flag in FLAGS.items():
        field = CFG.model_fields[name]
        default = "local host name" if field.default_factory else repr(field.default)
        help_ = f"{HELP[name]} [{env_var(name)}] (default: {default})"
        if field.annotation is bool:
            # --flag alone means true, --flag=false switches it off
            ap.add_argument(f'--{flag}', dest=flag, nargs='?', const='true', default=None, help=help_)
        else:
            ap.add_argument(f'--{flag}', dest=flag, type=str, default=None, help=help_)
    return ap.parse_args(argv)

class Reporter:
    """Owns the background sources, the report cache and the HTTP server."""

    def __init__(self, cfg: CFG, garden_source=None, app_dir=None, ci_dir=None):
        self.cfg = cfg
        self._own_garden = garden_source is None
        self.garden = GardenClient(cfg.garden_network, cfg.garden_addr, cfg.http_timeout) if garden_source is None else garden_source
        self.registry = Registry(self.garden, cfg.garden_refresh_interval)
        self.app_dir = new_app_directory(cfg) if app_dir is None else app_dir
        self.ci_dir = new_ci_directory(cfg) if ci_dir is None else ci_dir
        self.builder = ReportBuilder(cfg.hostname, self.app_dir, self.ci_dir)
        self.cache = ReportCache(lambda: self.builder.build(self.registry.containers()),
                                 interval=cfg.report_interval)
        self.app = create_app(self.cache)
        self.server = None

    def serve(self, socket_path):
        prepare_socket(socket_path)
        self.server = make_server(unix_url(socket_path), 0, self.app, threaded=True)
        log.info("Listening on %s", unix_url(socket_path))
        t = threading.Thread(target=self.server.serve_forever, name="http", daemon=True)
        t.start()
        return t

    def close(self):
        # refresh loops first, then requests, then the listener
        self.cache.close()
        for d in (self.registry, self.app_dir, self.ci_dir):
            d.close()
        if self.server is not None:
            self.server.shutdown()
            self.server.server_close()
        if self._own_garden:
            self.garden.close()
        cleanup_socket(self.cfg.socket_path)

def main(argv=None):
    args = parse_args(argv)
    try:
        cfg = load_cfg(args)
    except ValueError as e:
        raise SystemExit(f"invalid settings: {e}")
    logging.basicConfig(level=cfg.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    log.info("Starting on %s...", cfg.hostname)

    stop = threading.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, lambda *_: stop.set())

    reporter = Reporter(cfg)
    try:
        reporter.serve(cfg.socket_path)
    except OSError as e:
        log.error("error listening on %s: %s", cfg.socket_path, e)
        reporter.close()
        raise SystemExit(1)
    stop.wait()
    log.info("Shutting down")
    reporter.close()

if __name__ == '__main__':
    main()
