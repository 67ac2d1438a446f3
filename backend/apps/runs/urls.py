from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import GenerationRunViewSet

router = DefaultRouter()
router.register("runs", GenerationRunViewSet, basename="generation-run")

urlpatterns = [
    path("", include(router.urls)),
]
