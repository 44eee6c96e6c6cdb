from pydantic_settings import BaseSettings
from pydantic import AliasChoices, Field, field_validator, model_validator
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can come from:
    - docker-compose.yml environment section
    - .env file (for secrets like API keys)
    - System environment

    Variable names follow the existing deployment:
    - NODE_ENV, PORT, DOMAIN, ORIGIN, CREDENTIALS
    - SECRET_KEY, REFRESH_SECRET, EMAIL_SECRET (JWT signing)
    - NEO4J_URI, NEO4J_USERNAME, NEO4J_PASSWORD
    - STRIPE_TEST_KEY, STRIPE_WEBHOOK_SECRET
    - RESEND_API_KEY, RESEND_FROM_EMAIL
    """

    # Environment
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("NODE_ENV", "ENVIRONMENT"),
    )
    port: int = 3000
    domain: str = "http://localhost:3000"

    # CORS
    origin: str = "*"
    credentials: bool = False

    # JWT
    secret_key: str
    refresh_secret: Optional[str] = None
    email_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440
    refresh_token_expire_minutes: int = 10080
    email_token_expire_minutes: int = 1440

    # Neo4j
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_username: str = "neo4j"
    neo4j_password: str = ""
    neo4j_database: str = "neo4j"

    # Stripe
    stripe_test_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_success_url: str = "https://example.com/success"

    # Resend (transactional email)
    resend_api_key: str = ""
    resend_from_email: str = "Feetflight <onboarding@resend.dev>"
    contact_email: Optional[str] = None

    # Logging
    log_format: str = "pretty"
    log_dir: Optional[str] = None
    log_level: str = "info"

    # OpenAI
    openai_api_key: str = ""

    # Firebase
    firebase_project_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FIREBASE_PROJECT_ID", "projectId"),
    )
    firebase_credentials: Optional[str] = None

    # Uploaded media root (served under /public)
    upload_dir: str = "public"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra env vars

    @field_validator('secret_key')
    @classmethod
    def check_secret_key(cls, v):
        if len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters")
        return v

    @model_validator(mode='after')
    def default_to_secret_key(self):
        """Use SECRET_KEY when a dedicated refresh/email secret is not set"""
        if not self.refresh_secret:
            self.refresh_secret = self.secret_key
        if not self.email_secret:
            self.email_secret = self.secret_key
        return self

    @field_validator('stripe_test_key')
    @classmethod
    def check_stripe_key(cls, v):
        if v and not v.startswith(('sk_test_', 'sk_live_')):
            raise ValueError("STRIPE_TEST_KEY must start with sk_test_ or sk_live_")
        return v

    @field_validator('resend_api_key')
    @classmethod
    def check_resend_key(cls, v):
        if v and not v.startswith('re_'):
            raise ValueError("RESEND_API_KEY must start with re_")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def allowed_origins(self) -> List[str]:
        return [o.strip() for o in self.origin.split(',') if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
