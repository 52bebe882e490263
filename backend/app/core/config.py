from pydantic_settings import BaseSettings
from typing import Optional, List
from enum import Enum


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    # Environment
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True

    # Database
    database_url: str
    database_pool_size: int = 10
    database_max_overflow: int = 20
    database_pool_timeout: int = 30
    # Upper bound on the values of one "column IN (...)" query
    membership_query_limit: int = 30

    # Security
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    token_denylist_backend: str = "memory"  # memory or redis
    password_min_length: int = 6

    # OpenAI
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4.1"
    openai_timeout: int = 60

    # Prompt analysis / tag suggestion
    analysis_temperature: float = 0.7
    analysis_max_tokens: Optional[int] = None
    tag_suggestion_temperature: float = 0.3
    tag_suggestion_max_tokens: int = 100

    # Feedback email (Resend)
    resend_api_key: Optional[str] = None
    resend_api_url: str = "https://api.resend.com/emails"
    resend_timeout: int = 10
    feedback_from_address: str = "onboarding@resend.dev"
    feedback_to_address: str = "feedback@example.com"
    feedback_subject: str = "New Feedback Submission"

    # Rate Limiting
    rate_limit_enabled: bool = True
    redis_url: Optional[str] = "redis://localhost:6379"

    # CORS
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    # Monitoring
    metrics_enabled: bool = True

    # Application
    app_name: str = "Prompt Library API"
    app_version: str = "1.0.0"
    app_description: str = "Organize, tag and version prompts for generative-AI models"

    # Blob storage (profile pictures)
    blob_storage_dir: str = "./storage"
    public_base_url: str = "http://localhost:8000"
    max_file_size: int = 5 * 1024 * 1024  # 5MB
    allowed_image_types: List[str] = ["image/png", "image/jpeg", "image/gif", "image/webp"]

    # Prompt settings
    max_prompt_length: int = 20000
    project_name_max_length: int = 100

    # Production settings
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING

    def get_cors_config(self) -> dict:
        """Get CORS configuration"""
        return {
            "allow_origins": self.cors_origins,
            "allow_credentials": self.cors_allow_credentials,
            "allow_methods": self.cors_allow_methods,
            "allow_headers": self.cors_allow_headers,
        }

    def get_openai_config(self) -> dict:
        """Get OpenAI configuration"""
        return {
            "api_key": self.openai_api_key,
            "model": self.openai_model,
            "timeout": self.openai_timeout,
        }

    def get_feedback_mail_config(self) -> dict:
        """Get feedback email configuration"""
        return {
            "api_key": self.resend_api_key,
            "api_url": self.resend_api_url,
            "timeout": self.resend_timeout,
            "from_address": self.feedback_from_address,
            "to_address": self.feedback_to_address,
            "subject": self.feedback_subject,
        }


# Global settings instance
settings = Settings()


# Environment-specific configurations
def get_environment_config():
    """Get environment-specific configuration overrides"""
    if settings.is_production:
        return {
            "debug": False,
            "log_level": "WARNING",
            "rate_limit_enabled": True,
            "metrics_enabled": True,
        }
    elif settings.is_testing:
        return {
            "debug": False,
            "log_level": "DEBUG",
            "rate_limit_enabled": False,
        }
    else:  # development
        return {
            "debug": True,
            "log_level": "DEBUG",
            "rate_limit_enabled": False,
        }


# Apply environment-specific settings
env_config = get_environment_config()
for key, value in env_config.items():
    if hasattr(settings, key):
        setattr(settings, key, value)
