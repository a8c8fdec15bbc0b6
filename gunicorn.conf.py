"""Gunicorn configuration.

Run with:
    gunicorn -c gunicorn.conf.py "cognito_keycloak.flask_app:create_app()"

Worker threads share one Keycloak admin client per process; its token
refresh is serialized, so gthread workers are safe.
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '3000')}"
worker_class = "gthread"
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
threads = int(os.environ.get("GUNICORN_THREADS", "8"))
timeout = 30

accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()


def post_fork(server, worker):
    """Called just after a worker has been forked."""
    secrets_dir = "/run/secrets"
    if os.path.isdir(secrets_dir) and os.listdir(secrets_dir):
        worker.log.info("Found secrets in %s", secrets_dir)
    else:
        worker.log.info("No Docker secrets mounted; using environment configuration")
