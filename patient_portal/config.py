"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        database_url: SQLAlchemy connection string
        secret_key: Process-wide secret used to sign access tokens
        algorithm: Algorithm used for JWT encoding (typically HS256)
        access_token_expire_minutes: Access token lifetime in minutes (24h)

        # Email settings (mail is disabled while mail_server is unset)
        mail_username: SMTP server username
        mail_password: SMTP server password
        mail_from: Sender email address
        mail_port: SMTP server port
        mail_server: SMTP server hostname
        mail_starttls: Whether to use STARTTLS
        mail_ssl_tls: Whether to use SSL/TLS
        use_credentials: Whether to use credentials for SMTP
        validate_certs: Whether to validate certificates

        # Frontend settings
        frontend_url: URL of the frontend application (verification links)
        cors_origins: Extra origins allowed by the CORS middleware

        # Behaviour
        seed_demo_data: Seed demo accounts on start-up when the store is empty
        inactive_report_default_years: Default threshold of the inactivity report
        search_default_limit: Default page size of patient searches
    """
    # Database settings
    database_url: str = "sqlite:///./patient_portal.db"

    # JWT settings
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Email settings
    mail_username: Optional[str] = None
    mail_password: Optional[str] = None
    mail_from: str = "noreply@unifiedpatientmanager.com"
    mail_port: int = 587
    mail_server: Optional[str] = None
    mail_starttls: bool = True
    mail_ssl_tls: bool = False
    use_credentials: bool = True
    validate_certs: bool = True

    # Frontend settings
    frontend_url: str = "http://localhost:3000"
    cors_origins: List[str] = []

    # Behaviour
    seed_demo_data: bool = False
    inactive_report_default_years: int = 7
    search_default_limit: int = 50

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False

    @property
    def mail_enabled(self) -> bool:
        return bool(self.mail_server)


# Create settings instance
settings = Settings()
