from celery import Task
from django.db import OperationalError


class BaseTaskWithRetry(Task):
    """
    Base task that retries on transient database errors with exponential
    backoff. Domain errors are not retried.
    """

    autoretry_for = (OperationalError,)
    retry_backoff = True
    retry_backoff_max = 300
    retry_jitter = True
    retry_kwargs = {"max_retries": 3}
