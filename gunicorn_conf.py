"""
Gunicorn configuration for production deployment.

    gunicorn -c gunicorn_conf.py expense_tracker.main:app
"""
import multiprocessing
import os

# Server socket
bind = os.getenv("BIND", "0.0.0.0:8000")

# One worker per core, overridable; SQLite deployments should keep this low
workers = int(os.getenv("WEB_CONCURRENCY", str(max(2, multiprocessing.cpu_count()))))

# UvicornWorker runs the ASGI app
worker_class = "uvicorn.workers.UvicornWorker"

# Workers silent for more than this many seconds are killed and restarted
timeout = int(os.getenv("GUNICORN_TIMEOUT", "30"))
graceful_timeout = 30
keepalive = 2

# Log to stdout/stderr
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

proc_name = "expense_tracker"

# Tables are created on app startup in each worker; keep imports per worker
preload_app = False
