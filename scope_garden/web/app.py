from __future__ import annotations
from flask import Flask, Response, current_app
import orjson

from ..topology import ReportCache

def dumps(obj) -> bytes:
    return orjson.dumps(obj)

def create_app(cache: ReportCache) -> Flask:
    app = Flask(__name__)

    @app.get("/report")
    def report():
        try:
            body = dumps(cache.get())
        except Exception as e:
            current_app.logger.error("error encoding report: %s", e)
            return Response(f"{e}\n", status=500, mimetype="text/plain")
        return Response(body, mimetype="application/json")

    return app
