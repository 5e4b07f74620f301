import multiprocessing
import os

bind = os.environ.get("LESSON_SCHEDULER_BIND", "127.0.0.1:8000")
# Ledgers are held in process memory, so every worker would see its own copy.
workers = 1
threads = max(2, multiprocessing.cpu_count())
worker_class = "uvicorn.workers.UvicornWorker"
wsgi_app = "lesson_scheduler.main:app"
timeout = 60
graceful_timeout = 30
keepalive = 5
loglevel = "info"
accesslog = "-"
errorlog = "-"
