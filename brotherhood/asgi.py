# brotherhood/asgi.py
import os
import django

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'brotherhood.settings')
django.setup()

from django.core.asgi import get_asgi_application
from channels.routing import ProtocolTypeRouter, URLRouter
from apps.huddles.middleware import JWTAuthMiddlewareStack
from apps.huddles.routing import websocket_urlpatterns


# ASGI HTTP
django_asgi_app = get_asgi_application()

# Main application
application = ProtocolTypeRouter({
    "http": django_asgi_app,
    "websocket": JWTAuthMiddlewareStack(
        URLRouter(websocket_urlpatterns)
    ),
})
