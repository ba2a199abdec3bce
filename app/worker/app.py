# app/worker/app.py

"""
Celery application

Redis is the broker and the result backend. Task modules are discovered
from the packages that run scheduled syncs.
"""

from celery import Celery

app = Celery("estaciones_scheduler")

app.config_from_object("app.worker.config")

# Looks for tasks.py in each package
app.autodiscover_tasks([
    "app.catalog",
    "app.closures",
    "app.invoicing",
    "app.tanks",
])

if __name__ == "__main__":
    app.start()
