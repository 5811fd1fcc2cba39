"""
Screen name → controller class.
"""

from pharmachain.screens.dashboard import DashboardScreen
from pharmachain.screens.dispensing import DispensingScreen
from pharmachain.screens.distribution import DistributionScreen
from pharmachain.screens.inventory import InventoryScreen
from pharmachain.screens.patients import PatientsScreen
from pharmachain.screens.reports import ReportsScreen
from pharmachain.screens.settings import SettingsScreen

SCREEN_TYPES = {
    "dashboard": DashboardScreen,
    "inventory": InventoryScreen,
    "distribution": DistributionScreen,
    "dispensing": DispensingScreen,
    "patients": PatientsScreen,
    "reports": ReportsScreen,
    "settings": SettingsScreen,
}
