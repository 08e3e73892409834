"""WSGI entry point, exposes the module-level ``application`` callable."""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "factory_floor.settings")

application = get_wsgi_application()
