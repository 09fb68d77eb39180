from .audit_helper import log_action
from .cancellation import (CashLpoCommand, LpoResult, cancel_lpo_entry,
                           find_stale_lpos)
from .checkpoints import (CustomCheckpoint, CustomStation, FixedCheckpoint,
                          checkpoint_from_selection, resolve_column)
from .config import ConfigSnapshot, load_config_snapshot
from .driver_account import (create_driver_account_entry,
                             delete_driver_account_entry,
                             dispute_driver_account_entry,
                             settle_driver_account_entry,
                             update_driver_account_entry)
from .fuel_records import (cancel_fuel_record, create_fuel_record,
                           delete_fuel_record, get_fuel_record,
                           record_by_going_do, records_for_truck,
                           update_fuel_allocations, update_journey)
from .ledger import (ExtraFuelFinding, apply_liters, detect_extra_fuel,
                     find_ledger_record, recompute_record)
from .lpo import (amend_lpo_liters, create_lpo_entry, delete_lpo_entry,
                  lpo_entries_by_number, set_lpo_status)
from .numbering import next_lpo_number
from .reports import (cancellation_report, cancellation_statement,
                      driver_account_summary, monthly_fuel_summary,
                      route_totals, station_cost_summary,
                      truck_efficiency_bands, yard_fuel_summary)
from .yard_fuel import (delete_yard_dispense, link_pending_yard_dispenses,
                        pending_yard_dispenses, record_yard_dispense,
                        reject_yard_dispense)
