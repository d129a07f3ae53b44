"""
WSGI config for the parley project.

Served by gunicorn (see gunicorn.conf.py) with static files handled by
whitenoise.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "parley.settings")

application = get_wsgi_application()
