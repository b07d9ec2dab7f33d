from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import CoinWalletViewSet, RewardViewSet


router = DefaultRouter()
router.register(r'wallet', CoinWalletViewSet, basename='wallet')
router.register(r'rewards', RewardViewSet, basename='rewards')


urlpatterns = [
    path('', include(router.urls)),
]
