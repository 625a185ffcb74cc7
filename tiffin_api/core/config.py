from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    PROJECT_NAME: str = "Tiffin Booking API"
    DATABASE_URL: str = "sqlite:///./tiffin.db"
    LOG_LEVEL: str = "INFO"

    # Admin endpoints are guarded by a shared key sent as X-API-Key
    ADMIN_API_KEY: str = "admin_key_change_me_in_production"

    # Pricing
    DELIVERY_CHARGE: float = 19.0
    DEFAULT_TRIAL_PRICE: float = 99.0
    DEFAULT_MONTHLY_PRICE: float = 2000.0
    # When no delivery days are picked, customizations are charged for every day they run
    PRICE_FULL_DAYS_WHEN_NONE_SELECTED: bool = True

    FRONTEND_URL: str = "http://localhost:5000"

    # Mail. Leaving MAIL_SERVER empty logs emails instead of sending them.
    MAIL_USERNAME: str = Field("", validation_alias="MAIL_USERNAME")
    MAIL_PASSWORD: str = Field("", validation_alias="MAIL_PASSWORD")
    MAIL_FROM: str = Field("orders@tiffin.local", validation_alias="MAIL_FROM")
    MAIL_PORT: int = Field(465, validation_alias="MAIL_PORT")
    MAIL_SERVER: str = Field("", validation_alias="MAIL_SERVER")
    MAIL_SSL: bool = Field(True, validation_alias="MAIL_SSL")

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
