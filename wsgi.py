"""
WSGI entry point for Flask application.

This file is used by production WSGI servers (e.g., Gunicorn, uWSGI)
and by the Flask CLI via 'flask --app wsgi run' or 'flask --app wsgi init-db'.
"""

import os
from dotenv import load_dotenv

# Load environment variables before the config class reads them
dotenv_path = os.path.join(os.path.dirname(__file__), '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)

from koopflow import create_app  # noqa: E402

app = create_app()

if __name__ == '__main__':
    app.run()
