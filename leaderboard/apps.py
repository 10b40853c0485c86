from django.apps import AppConfig


class LeaderboardConfig(AppConfig):
    """Configuration for the leaderboard Django app."""

    name = 'leaderboard'
