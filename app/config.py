"""
Application Configuration Management

Loads configuration from environment variables and AWS Secrets Manager.
Inside AWS Lambda, secrets referenced by ARN environment variables are
fetched before settings are built.
"""

import os
from functools import lru_cache
from typing import List, Optional

import boto3
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with validation"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(default="development", description="Environment name")

    # Application
    app_name: str = Field(default="Backorder Proxy")
    app_version: str = Field(default="1.0.0")
    log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)

    # App proxy signing
    shopify_api_secret: Optional[SecretStr] = Field(
        default=None, description="Shared secret used to sign app proxy requests"
    )

    # Downstream
    azure_endpoint: Optional[str] = Field(
        default=None, description="Downstream function URL receiving backorders"
    )
    downstream_timeout: float = Field(
        default=10.0, description="Downstream request timeout in seconds"
    )

    # CORS
    cors_origins: List[str] = Field(default=["http://localhost:3000"])
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: List[str] = Field(default=["GET", "POST"])
    cors_allow_headers: List[str] = Field(default=["*"])

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment"""
        valid_envs = ["development", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in valid_envs:
            raise ValueError(f"Environment must be one of {valid_envs}")
        return v_lower

    @field_validator("azure_endpoint")
    @classmethod
    def blank_endpoint_is_unset(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.environment == "development"

    @property
    def signing_secret(self) -> Optional[bytes]:
        """Shared secret as bytes, or None when unset or empty"""
        if self.shopify_api_secret is None:
            return None
        raw = self.shopify_api_secret.get_secret_value()
        return raw.encode("utf-8") if raw else None

    def missing_configuration(self) -> List[str]:
        """
        List configuration the proxy needs to serve POST /backorder.

        Missing values do not stop the application: an absent secret rejects
        every request and an absent endpoint answers 500.
        """
        missing = []

        if self.signing_secret is None:
            missing.append("shopify_api_secret")
        if not self.azure_endpoint:
            missing.append("azure_endpoint")

        return missing


# Environment variable -> ARN variable pointing at the secret holding its value
SECRET_ARN_VARIABLES = {
    "SHOPIFY_API_SECRET": "SHOPIFY_API_SECRET_ARN",
    "AZURE_ENDPOINT": "AZURE_ENDPOINT_ARN",
}


def _fetch_secret_by_arn(arn: str, region: str) -> str:
    """
    Fetch a secret value from AWS Secrets Manager using ARN.

    Args:
        arn: The ARN of the secret
        region: AWS region

    Returns:
        The secret value as a string
    """
    try:
        client = boto3.client("secretsmanager", region_name=region)
        response = client.get_secret_value(SecretId=arn)
        return response.get("SecretString", "")
    except Exception as e:
        raise RuntimeError(f"Failed to retrieve secret from ARN {arn}: {e}") from e


def load_secrets_from_arns() -> List[str]:
    """
    Inject secrets referenced by ``*_ARN`` variables into the environment.

    Variables already set are left alone. Only runs inside Lambda.

    Returns:
        Names of the environment variables that were populated
    """
    if not os.getenv("AWS_LAMBDA_FUNCTION_NAME"):
        return []

    region = os.getenv("AWS_REGION", "us-east-1")
    loaded = []

    for env_name, arn_name in SECRET_ARN_VARIABLES.items():
        arn = os.getenv(arn_name)
        if arn and not os.getenv(env_name):
            os.environ[env_name] = _fetch_secret_by_arn(arn, region)
            loaded.append(env_name)

    return loaded


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    In Lambda, secrets referenced by ARN are loaded first so that Settings
    picks them up like any other environment variable.
    """
    try:
        load_secrets_from_arns()
    except RuntimeError as e:
        # Settings still builds; the missing values surface at startup
        print(f"Error loading secrets from Secrets Manager: {e}")

    return Settings()


# Export singleton instance
settings = get_settings()
