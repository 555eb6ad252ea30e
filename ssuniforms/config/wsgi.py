"""
WSGI config for the SS Uniforms project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'ssuniforms.config.settings')

application = get_wsgi_application()
