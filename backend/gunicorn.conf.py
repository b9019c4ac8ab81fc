# Run with: gunicorn -c gunicorn.conf.py "advent_auth:create_app()"
import os

# Bind & workers
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
threads = 1
timeout = 60  # above FEDERATION_HTTP_TIMEOUT x2 (token + profile calls)
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr; the app logger already emits JSON
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

# Trust proxy headers (ProxyFix handles X-Forwarded-* inside the app)
forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "*")
proxy_protocol = False
