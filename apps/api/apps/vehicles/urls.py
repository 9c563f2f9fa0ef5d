"""Vehicle inventory URL configuration."""
from rest_framework.routers import SimpleRouter

from .views import VehicleViewSet

router = SimpleRouter(trailing_slash=False)
router.register(r'vehicles', VehicleViewSet, basename='vehicle')

urlpatterns = router.urls
