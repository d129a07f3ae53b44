# gunicorn.conf.py
import os

# Worker configuration
# Reset tokens live in the cache; with the default local-memory cache keep a
# single worker or configure CACHE_BACKEND.
workers = int(os.getenv("GUNICORN_WORKERS", 1))
threads = int(os.getenv("GUNICORN_THREADS", 4))
worker_class = "gthread"
timeout = int(os.getenv("GUNICORN_TIMEOUT", 60))
keepalive = 2
max_requests = 1000
max_requests_jitter = 50

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

# Process naming
proc_name = "parley-api"

# Application
wsgi_app = "parley.wsgi:application"

# Bind address
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")

# Behind a proxy
forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "*")
