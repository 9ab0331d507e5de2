import logging
from typing import Optional

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "DollersElectro Storefront"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    ENV: str = "dev"  # Environment: "dev", "staging", "prod"
    BRAND_NAME: str = "DollersElectro"

    # Collection store
    STORE_BACKEND: str = "file"  # "file" (JSON per collection) or "mongo"
    DATA_DIR: str = "./database/data"
    STORE_FAIL_FAST: bool = False  # Raise on read/write failures instead of degrading

    # Database (MongoDB)
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "dollers_electro"

    # Seeding / provisioning
    DEFAULT_ADMIN_EMAIL: str = "admin@dollerselectro.com"
    SEED_CUSTOMER_EMAIL: str = "admin@dollerselectro.com"

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    RESET_TOKEN_EXPIRE_MINUTES: int = 15

    # One-time codes
    OTP_EXPIRE_MINUTES: int = 10
    OTP_MAX_ATTEMPTS: int = 5

    # Twilio (SMS)
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_PHONE_NUMBER: Optional[str] = None
    TWILIO_API_URL: str = "https://api.twilio.com/2010-04-01"

    # Cloudinary (image hosting)
    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_API_KEY: Optional[str] = None
    CLOUDINARY_API_SECRET: Optional[str] = None
    CLOUDINARY_API_URL: str = "https://api.cloudinary.com/v1_1"
    CLOUDINARY_FOLDER: str = "dollers-electro"

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 10.0

    @property
    def sms_configured(self) -> bool:
        return bool(
            self.TWILIO_ACCOUNT_SID and self.TWILIO_AUTH_TOKEN and self.TWILIO_PHONE_NUMBER
        )

    @property
    def images_configured(self) -> bool:
        return bool(
            self.CLOUDINARY_CLOUD_NAME
            and self.CLOUDINARY_API_KEY
            and self.CLOUDINARY_API_SECRET
        )

    def model_post_init(self, __context):
        """Report which external providers are configured."""
        super().model_post_init(__context)

        if not self.sms_configured:
            logger.debug("Twilio not configured, SMS service will be disabled.")
        if not self.images_configured:
            logger.debug("Cloudinary not configured, image service will be disabled.")

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
