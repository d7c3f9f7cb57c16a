"""
Gunicorn configuration for the Energycast API.

Run with:
  gunicorn energycast.main:app -c gunicorn.conf.py

Env vars that override defaults:
  PORT     TCP port to bind (default: 8000)
  WORKERS  number of worker processes (default: 2)
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Workers share one forecast cache database. CACHE_LOCK only serializes
# writes inside a single process; cross-process writes rely on the
# per-day unique constraint.
workers = int(os.environ.get("WORKERS", "2"))

worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

timeout = 120

# stdout only; the app's own loggers use the same stream.
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sus'

graceful_timeout = 30
