# Overview: Background datastore ping so hosted databases don't idle out.

"""
Keep-alive

Free-tier hosted databases suspend after a quiet period and the first
request after that pays the cold start. A daemon thread issues SELECT 1
every KEEPALIVE_INTERVAL_SECONDS. Failures are logged and the loop keeps
going; the thread never takes the process down.
"""

from __future__ import annotations

import threading

from flask import Flask
from sqlalchemy import text

from .extensions import db


def ping_database() -> None:
    db.session.execute(text("SELECT 1"))
    db.session.rollback()


def _run(app: Flask, interval: int, stop: threading.Event) -> None:
    while not stop.wait(interval):
        with app.app_context():
            try:
                ping_database()
                app.logger.debug("Keep-alive ping ok")
            except Exception:
                app.logger.warning("Keep-alive ping failed", exc_info=True)


def start_keepalive(app: Flask) -> threading.Event | None:
    """Start the ping thread; returns its stop event, or None when disabled."""
    interval = int(app.config.get("KEEPALIVE_INTERVAL_SECONDS", 0) or 0)
    if interval <= 0 or app.config.get("TESTING"):
        return None

    stop = threading.Event()
    thread = threading.Thread(
        target=_run,
        args=(app, interval, stop),
        name="kouriten-keepalive",
        daemon=True,
    )
    thread.start()
    app.extensions["keepalive_stop"] = stop
    app.logger.info("Keep-alive started (every %ss)", interval)
    return stop
