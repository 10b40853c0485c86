"""Root URL configuration for leaderboard_tool."""

from django.urls import include, path

urlpatterns = [
    path('', include('leaderboard.urls')),
]
