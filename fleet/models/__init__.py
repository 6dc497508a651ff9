from fleet.models.user import User, EventLog
from fleet.models.vehicle import Vehicle, MaintenanceRecord
from fleet.models.rental import Rental
from fleet.models.people import Driver, Customer
from fleet.models.report import SavedReport

__all__ = ["User", "EventLog", "Vehicle", "MaintenanceRecord", "Rental", "Driver", "Customer", "SavedReport"]
