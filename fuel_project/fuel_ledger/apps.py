from django.apps import AppConfig


class FuelLedgerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "fuel_ledger"
    verbose_name = "Fuel orders & ledger"

    # ensure receivers are registered
    def ready(self):
        import fuel_ledger.signals  # noqa: F401
