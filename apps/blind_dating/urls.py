from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import BlindDateViewSet


router = DefaultRouter()
router.register(r'blind', BlindDateViewSet, basename='blind')


urlpatterns = [
    path('', include(router.urls)),
]
