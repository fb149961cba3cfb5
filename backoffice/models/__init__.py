from backoffice.models.user import User
from backoffice.models.package import Package
from backoffice.models.location import Location
from backoffice.models.inventory_item import InventoryItem
from backoffice.models.stock import StockLevel, StockMovement
from backoffice.models.transfer import Transfer
from backoffice.models.time_entry import TimeEntry
from backoffice.models.booking import MeetingRoom, Booking

__all__ = [
    'User',
    'Package',
    'Location',
    'InventoryItem',
    'StockLevel',
    'StockMovement',
    'Transfer',
    'TimeEntry',
    'MeetingRoom',
    'Booking',
]
