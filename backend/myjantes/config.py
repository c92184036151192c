from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # App
    APP_ENV: str = "dev"
    SECRET_KEY: str
    JWT_EXPIRES_MIN: int = 1440

    # DB
    DB_URL: str

    # Gmail / Calendar (possono essere None in dev: in quel caso si logga soltanto)
    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: str | None = None
    GOOGLE_REFRESH_TOKEN: str | None = None
    EMAIL_FROM: str | None = None
    GOOGLE_CALENDAR_ID: str | None = None
    TIMEZONE: str = "Europe/Paris"

    # Link pubblico usato nelle email (fatture, notifiche)
    PUBLIC_BASE_URL: str = "http://127.0.0.1:8000"

    # Email admin (opzionale): CSV/; o newline. Se vuoto -> fallback agli admin nel DB.
    ADMIN_EMAILS: str | None = None

    # --- Slot orari ---
    # "sql" in produzione, "memory" per test/demo locali (mai mischiati)
    SLOT_STORAGE: str = "sql"
    # "enforced": 409 se lo slot è pieno/chiuso; "advisory": logga e accetta
    BOOKING_ADMISSION: str = "enforced"
    DEFAULT_SLOT_CAPACITY: int = 2
    TIME_SLOTS: str = "08:00,09:00,10:00,11:00,12:00,13:00,14:00,15:00,16:00,17:00,18:00"

    # IVA di default sulle fatture
    DEFAULT_VAT_RATE: str = "20.00"

    @property
    def time_slot_labels(self) -> tuple[str, ...]:
        return tuple(p.strip() for p in self.TIME_SLOTS.split(",") if p.strip())


settings = Settings()
