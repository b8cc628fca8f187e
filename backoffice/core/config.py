from decimal import Decimal
from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    APP_NAME: str = Field("Backoffice", description="Logger namespace and log file prefix")
    LOG_LEVEL: str = Field("INFO", description="Root level for backoffice loggers")
    LOG_DIR: str = Field("./data/logs", description="Directory for rotating log files")
    DB_URL: str = Field("sqlite:///./data/backoffice.db", description="Journal database URL")

    # Statutory defaults (Chile)
    # AFP: mandatory 10% plus the fund's own commission (Institution rate)
    PENSION_BASE_RATE_PERCENT: Decimal = Decimal("10")
    # Salud: 7% legal minimum over the capped taxable base
    HEALTH_RATE: Decimal = Decimal("0.07")
    # Seguro de cesantia, employee share on indefinite contracts
    UNEMPLOYMENT_RATE: Decimal = Decimal("0.006")

    # Retencion boletas de honorarios by calendar year
    FEE_RETENTION_RATES: Dict[int, Decimal] = {
        2020: Decimal("0.1075"),
        2021: Decimal("0.1150"),
        2022: Decimal("0.1225"),
        2023: Decimal("0.13"),
        2024: Decimal("0.1375"),
        2025: Decimal("0.145"),
        2026: Decimal("0.1525"),
        2027: Decimal("0.16"),
        2028: Decimal("0.17"),
    }

    # Per-company chart names keyed by account role, e.g. {"Accounts-Receivable": "Clientes"}
    ACCOUNT_NAMES: Dict[str, str] = Field(default_factory=dict)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
