import pydantic_settings


class BridgeConfig(pydantic_settings.BaseSettings):
    DEVOPS_ORG_URL: str = "https://dev.azure.com/organization"
    DEVOPS_PROJECT: str = ""
    DEVOPS_REPOSITORY: str = ""
    DEVOPS_TOKEN: str = ""
    DEVOPS_API_VERSION: str = "7.1"
    HTTP_TIMEOUT: float = 30
    LISTENER_PORT: int = 8000
    SECRET_KEY: str = ""
    SIGNATURE_TTL: int = 300
    DIFF_CONTEXT_LINES: int = 3
    MAX_CONCURRENT_FETCHES: int = 8
    LOG_LEVEL: str = "INFO"

    model_config = pydantic_settings.SettingsConfigDict(
        env_file="./.env", extra="ignore"
    )


CONFIG = BridgeConfig()
