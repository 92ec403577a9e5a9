"""
Gunicorn configuration for the LUNARA API.
"""
import os

bind = f"0.0.0.0:{os.getenv('PORT', '8080')}"

# Sessions live in Redis when REDIS_URL is set; without it each worker
# has its own in-memory store, so run a single worker in that case
workers = int(os.getenv('GUNICORN_WORKERS', '2' if os.getenv('REDIS_URL') else '1'))
worker_class = 'sync'
timeout = 60  # Stripe calls happen inside checkout requests
keepalive = 5

# Logging
accesslog = '-'
errorlog = '-'
loglevel = os.getenv('LOG_LEVEL', 'info')
capture_output = True

proc_name = 'lunara'

preload_app = True
graceful_timeout = 30


def on_starting(server):
    print("[Gunicorn] Starting LUNARA API...")


def on_exit(server):
    print("[Gunicorn] LUNARA API shutting down...")
