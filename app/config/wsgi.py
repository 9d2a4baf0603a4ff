"""
WSGI config for the chat backend.

Serves the REST surface only. The WebSocket endpoint needs the ASGI
application in config.asgi, so use this callable for HTTP-only workers
(management tooling, admin, plain REST deployments).
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
