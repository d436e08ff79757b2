from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ReviewQueueViewSet

router = DefaultRouter()
router.register(r'reviews', ReviewQueueViewSet, basename='review')

urlpatterns = [
    path('', include(router.urls)),
]
