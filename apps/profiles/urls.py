from rest_framework.routers import DefaultRouter

from .views import PersonViewSet, InterestViewSet, MatchViewSet

router = DefaultRouter()
router.register(r'persons', PersonViewSet, basename='person')
router.register(r'interests', InterestViewSet, basename='interest')
router.register(r'matches', MatchViewSet, basename='match')

urlpatterns = router.urls
