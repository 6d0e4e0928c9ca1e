"""
WSGI config for chirpline project.
"""
import os
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'chirpline.settings')
application = get_wsgi_application()
