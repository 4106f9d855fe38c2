"""
WSGI config for the barpos project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'barpos.settings')

application = get_wsgi_application()
