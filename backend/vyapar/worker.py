# vyapar/worker.py
# Entry point for the Celery worker and beat.
from vyapar.celery_app import celery_app

# celery -A vyapar.worker.celery_app worker --beat --loglevel=info
