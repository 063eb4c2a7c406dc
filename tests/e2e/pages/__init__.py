"""
Page Object Models for the Vehicle Registry E2E Tests

This package provides page objects that encapsulate UI interactions
and provide a clean API for test code.
"""

from .base_page import BasePage
from .dashboard_page import DashboardPage
from .login_page import LoginPage
from .profile_page import ProfilePage
from .vehicle_detail_page import VehicleDetailPage
from .vehicle_search_page import VehicleSearchPage

__all__ = [
    "BasePage",
    "LoginPage",
    "DashboardPage",
    "ProfilePage",
    "VehicleSearchPage",
    "VehicleDetailPage",
]
