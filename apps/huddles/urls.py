from rest_framework.routers import SimpleRouter

from .views import HuddleViewSet

# Mounted at /api/huddles/, so the viewset owns the root of the prefix
router = SimpleRouter()
router.register(r'', HuddleViewSet, basename='huddle')

urlpatterns = router.urls
