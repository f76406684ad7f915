from django.urls import re_path

from .consumers import HuddleConsumer

websocket_urlpatterns = [
    re_path(r"^ws/huddles/(?P<huddle_id>\d+)/$", HuddleConsumer.as_asgi()),
]
