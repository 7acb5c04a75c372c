from flask import Flask, request, jsonify, Response
from werkzeug.exceptions import HTTPException

import atexit
import logging
import os
from logging.config import dictConfig
from typing import Optional

from memcell.config import Settings
from memcell.datastore import DataStore, DEFAULT_EXPIRATION
from memcell.parser import CommandParser
from memcell.reaper import Reaper

from memcell.executor import Executor

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'default': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            }
        },
        'handlers': {
            'default': {
                'class': 'logging.StreamHandler',
                'formatter': 'default'
            }
        },
        'root': {
            'level': level,
            'handlers': ['default']
        }
    })


def create_app(settings: Optional[Settings] = None, data_store: Optional[DataStore] = None) -> Flask:
    """
    Build the HTTP front end around a DataStore.

    The reaper is started here and kept on `app.extensions["memcell"]`
    together with the store so the owner can stop it.
    """
    settings = settings or Settings.from_env()
    data_store = data_store if data_store is not None else DataStore(default_ttl=settings.default_ttl)
    reaper = Reaper(data_store, settings.reap_interval).start()
    executor = Executor(data_store, CommandParser(), snapshot_path=settings.snapshot_path)

    app = Flask(__name__)
    app.extensions["memcell"] = {
        "store": data_store,
        "reaper": reaper,
        "settings": settings,
    }

    @app.route("/cache/<key>", methods=["GET"])
    def get_value(key: str):
        value, found = data_store.get(key)
        if not found:
            return Response(status=404)
        return Response(value, mimetype='application/octet-stream')

    @app.route("/cache/<key>", methods=["PUT"])
    def set_value(key: str):
        # the whole body is the value; remote callers always get the default TTL
        data_store.set(key, request.get_data(), DEFAULT_EXPIRATION)
        return Response(status=200)

    @app.route("/cache/<key>", methods=["DELETE"])
    def delete_value(key: str):
        data_store.delete(key)
        return Response(status=200)

    @app.route("/status", methods=["GET"])
    def status():
        return jsonify({"count": data_store.count()})

    @app.route("/", methods=["POST"])
    def command():
        payload = request.get_json(silent=True) or {}
        cmd = payload.get("command", "")
        if not cmd or not isinstance(cmd, str) or not cmd.strip():
            return Response("ERROR: No command provided", status=400, mimetype='text/plain')
        cmd = cmd.strip()
        logger.info(f"Received command: {cmd}")
        result = executor.execute(cmd)
        app.logger.info(f"Command result: {result}")
        return Response(result, mimetype='text/plain')

    @app.errorhandler(Exception)
    def server_failure(e):
        if isinstance(e, HTTPException):
            return e
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return Response("server failure", status=500, mimetype='text/plain')

    return app


def restore_snapshot(data_store: DataStore, path: Optional[str]):
    if not path or not os.path.exists(path):
        return
    data_store.load_file(path)


def main():
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    data_store = DataStore(default_ttl=settings.default_ttl)
    restore_snapshot(data_store, settings.snapshot_path)
    app = create_app(settings, data_store)
    reaper = app.extensions["memcell"]["reaper"]

    def shutdown():
        reaper.stop()
        if settings.snapshot_path:
            data_store.save_file(settings.snapshot_path)

    atexit.register(shutdown)
    app.run(host=settings.host, port=settings.port, debug=False, use_reloader=False, threaded=True)


if __name__ == "__main__":
    main()
