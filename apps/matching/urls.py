from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import DatingViewSet


router = DefaultRouter()
router.register(r'dating', DatingViewSet, basename='dating')


urlpatterns = [
    path('', include(router.urls)),
]
