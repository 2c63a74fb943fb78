from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    base_url: str = "https://api.esa.io/"
    api_version: str = "v1"
    access_token: str = ""
    timeout: float = 30.0
    user_agent: str = "esa-client/0.1"
    log_format: str = "text"
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "ESA_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


settings = Settings()
