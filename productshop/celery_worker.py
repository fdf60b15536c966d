# productshop/celery_worker.py
from celery import Celery

from productshop.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "productshop",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks must be imported explicitly for the worker to register them
celery_app.conf.imports = (
    "productshop.services.notification_service",
)

celery_app.conf.timezone = "UTC"
