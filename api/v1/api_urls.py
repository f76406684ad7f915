# api/v1/api_urls.py
from django.urls import include, path


urlpatterns = [
    path('accounts/', include('apps.accounts.urls')),
    path('profiles/', include('apps.profiles.urls')),
    path('gatherings/', include('apps.gatherings.urls')),
    path('huddles/', include('apps.huddles.urls')),
    path('prayers/', include('apps.prayers.urls')),
]
