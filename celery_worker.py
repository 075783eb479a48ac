"""Celery worker entry point.

    celery -A celery_worker.celery worker --loglevel=info
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
dotenv_path = os.path.join(os.path.dirname(__file__), '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)

from koopflow import create_app  # noqa: E402
from koopflow.extensions import celery  # noqa: E402,F401
import koopflow.tasks.extraction  # noqa: E402,F401  (registers tasks)

# Create Flask app to initialize Celery configuration
app = create_app()

if __name__ == '__main__':
    with app.app_context():
        celery.start()
