from .actions import (cancel_fuel_records, cancel_lpo_entries,
                      mark_lpo_as_completed, mark_lpo_as_sent,
                      reject_yard_dispenses, settle_driver_accounts,
                      soft_delete_driver_accounts, soft_delete_fuel_records,
                      soft_delete_lpo_entries, soft_delete_yard_dispenses)
from .auditlog import AuditLogAdmin, NotificationAdmin
from .driver_account import DriverAccountEntryAdmin
from .fuel import FuelRecordAdmin, FuelStationAdmin
from .lpo import LPOEntryAdmin
from .ReadOnly import ReadOnlyAdmin
from .staff import StaffRoleAdmin
from .yard_fuel import YardFuelDispenseAdmin
