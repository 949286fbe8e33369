"""
WSGI config for the payment gateway.

Provided for traditional WSGI servers (gunicorn, uWSGI); the default
deployment serves config.asgi through Uvicorn.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
