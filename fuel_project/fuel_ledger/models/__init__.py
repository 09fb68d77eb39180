from .auditlog import AuditLog
from .driver_account import DriverAccountEntry
from .fuel_record import FuelRecord
from .lpo import LPOEntry
from .notification import Notification
from .staff import StaffRole, has_role
from .station import FuelStation
from .yard_fuel import YardFuelDispense
