from django.urls import path

from . import views

app_name = "fuel_ledger"

urlpatterns = [
    # Fuel ledger records
    path("fuel-records/", views.fuel_records, name="fuel-records"),
    path("fuel-records/<int:record_id>/", views.fuel_record_detail,
         name="fuel-record-detail"),
    path("fuel-records/<int:record_id>/extra-fuel/",
         views.fuel_record_extra_fuel, name="fuel-record-extra-fuel"),
    path("fuel-records/<int:record_id>/cancel/", views.fuel_record_cancel,
         name="fuel-record-cancel"),
    path("fuel-records/by-do/<str:going_do>/", views.fuel_record_by_do,
         name="fuel-record-by-do"),

    # LPO entries
    path("lpo-entries/", views.lpo_entries, name="lpo-entries"),
    path("lpo-entries/next-number/", views.lpo_next_number,
         name="lpo-next-number"),
    path("lpo-entries/cancellation-report/<str:lpo_no>/",
         views.lpo_cancellation_report, name="lpo-cancellation-report"),
    path("lpo-entries/<int:entry_id>/", views.lpo_entry_detail,
         name="lpo-entry-detail"),
    path("lpo-entries/<int:entry_id>/cancel/", views.lpo_entry_cancel,
         name="lpo-entry-cancel"),
    path("lpo-entries/<int:entry_id>/status/", views.lpo_entry_status,
         name="lpo-entry-status"),

    # Driver's account
    path("driver-accounts/", views.driver_accounts, name="driver-accounts"),
    path("driver-accounts/<int:entry_id>/", views.driver_account_detail,
         name="driver-account-detail"),
    path("driver-accounts/<int:entry_id>/settle/",
         views.driver_account_settle, name="driver-account-settle"),
    path("driver-accounts/<int:entry_id>/dispute/",
         views.driver_account_dispute, name="driver-account-dispute"),

    # Yard fuel
    path("yard-fuel/", views.yard_fuel, name="yard-fuel"),
    path("yard-fuel/pending/", views.yard_fuel_pending,
         name="yard-fuel-pending"),
    path("yard-fuel/<int:dispense_id>/", views.yard_fuel_detail,
         name="yard-fuel-detail"),
    path("yard-fuel/<int:dispense_id>/reject/", views.yard_fuel_reject,
         name="yard-fuel-reject"),

    # Reports and exports
    path("reports/<slug:name>/", views.report, name="report"),
    path("exports/lpo-entries.csv", views.export_lpo_entries,
         name="export-lpo-entries"),
    path("exports/driver-accounts.csv", views.export_driver_accounts,
         name="export-driver-accounts"),
]
