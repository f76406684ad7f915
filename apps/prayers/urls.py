from rest_framework.routers import SimpleRouter

from .views import PrayerViewSet

router = SimpleRouter()
router.register(r'', PrayerViewSet, basename='prayer')

urlpatterns = router.urls
