from django.apps import AppConfig


class FuelCompanionConfig(AppConfig):
    name = "fuel_companion"
    verbose_name = "Fuel companion"
