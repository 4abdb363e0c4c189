"""
Card components for Norgeskole.

Daily word cards for learners and the dashboard tiles used on the teacher
start page.
"""

from .daily_word import DailyWordCard, DailyWordDetailCard, DashboardCard, DashboardTile

__all__ = ["DailyWordCard", "DailyWordDetailCard", "DashboardCard", "DashboardTile"]
