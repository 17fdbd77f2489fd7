from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Tabular store
    INVENTORY_FILE: str = "inventory.xlsx"
    INVENTORY_SHEET: str = "Inventory"

    # A corrupt workbook loads as an empty collection instead of failing.
    # Any later save then overwrites whatever was in the file.
    LOSSY_LOAD: bool = False

    # Approve/reject may overwrite records that are already Approved or Rejected
    ALLOW_TERMINAL_OVERWRITE: bool = True

    # Attachments
    UPLOAD_DIR: str = "uploads"

    # Credential lists
    USERS_FILE: str = "users.json"
    ADMIN_USERS_FILE: str = "admin_users.json"

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


settings = Settings()
