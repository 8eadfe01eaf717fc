"""Django settings for the fuel companion project."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = BASE_DIR.parent
DATA_DIR = BASE_DIR / "fuel_companion" / "data"

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "change-me-in-production")
DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "fuel_companion",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.getenv("FUEL_COMPANION_DB_PATH", str(PROJECT_ROOT / "db.sqlite3")),
    }
}

LANGUAGE_CODE = "en-gb"
TIME_ZONE = os.getenv("FUEL_COMPANION_TIME_ZONE", "Europe/London")
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "fuel_companion": {
            "handlers": ["console"],
            "level": os.getenv("FUEL_COMPANION_LOG_LEVEL", "INFO"),
        },
    },
}

STATION_CATALOG_PATH = Path(os.getenv("STATION_CATALOG_PATH", str(DATA_DIR / "stations.json")))
VEHICLE_CATALOG_PATH = Path(os.getenv("VEHICLE_CATALOG_PATH", str(DATA_DIR / "vehicles.json")))

RECENT_VEHICLES_LIMIT = int(os.getenv("RECENT_VEHICLES_LIMIT", "5"))
RECENT_VEHICLES_STORAGE_KEY = os.getenv("RECENT_VEHICLES_STORAGE_KEY", "recent_vehicles")
EXPENSE_LEDGER_STORAGE_KEY = os.getenv("EXPENSE_LEDGER_STORAGE_KEY", "fuel_receipts")

CURRENCY_SIGN = os.getenv("CURRENCY_SIGN", "£")
SUGGESTED_UNIT_PRICES = {
    "Petrol": float(os.getenv("SUGGESTED_PETROL_PRICE", "1.43")),
    "Diesel": float(os.getenv("SUGGESTED_DIESEL_PRICE", "1.50")),
    "Electric": float(os.getenv("SUGGESTED_ELECTRIC_PRICE", "0.79")),
}

FALLBACK_LATITUDE = os.getenv("FALLBACK_LATITUDE")
FALLBACK_LONGITUDE = os.getenv("FALLBACK_LONGITUDE")
