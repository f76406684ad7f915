from django.contrib import admin
from django.urls import path, include

from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView


urlpatterns = [
    path('admin/', admin.site.urls),

    path('api/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    path('api/', include([
        path('accounts/', include('apps.accounts.urls')),
        path('profiles/', include('apps.profiles.urls')),
        path('gatherings/', include('apps.gatherings.urls')),
        path('huddles/', include('apps.huddles.urls')),
        path('prayers/', include('apps.prayers.urls')),

        path('v1/', include('api.v1.api_urls')),
    ])),
]
