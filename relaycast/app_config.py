from pydantic import BaseModel

from relaycast.shared.config import config


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class AppEnvironConfig(BaseModel):
    DEBUG: bool = config.get_bool("DEBUG", False)

    API_HOST: str = config.get_str("API_HOST", "0.0.0.0")
    API_PORT: int = config.get_int("API_PORT", 8000)
    API_WORKERS: int = config.get_int("API_WORKERS", 1)
    API_CORS_ORIGINS: list[str] = _split_csv(config.get_str("API_CORS_ORIGINS", "*"))

    LOGFIRE_ENABLE: bool = config.get_bool("LOGFIRE_ENABLE", False)
    LOGFIRE_TOKEN: str | None = config.get_str("LOGFIRE_TOKEN") or None

    # MongoDB
    MONGO_URL: str = config.get_mongo_url()
    MONGO_DATABASE: str = config.get_str("MONGO_DATABASE", "relaycast")

    # Caller authentication (token issued by the platform's auth service)
    AUTH_JWT_SECRET: str | None = config.get_str("AUTH_JWT_SECRET") or None
    AUTH_JWT_ALGORITHM: str = config.get_str("AUTH_JWT_ALGORITHM", "HS256")

    # Remote media-control panel
    MEDIA_PANEL_DOMAIN: str = config.get_str("MEDIA_PANEL_DOMAIN", "nimble.wmspanel.com")
    MEDIA_PANEL_API_VERSION: str = config.get_str("MEDIA_PANEL_API_VERSION", "2")
    MEDIA_PANEL_UUID: str | None = config.get_str("MEDIA_PANEL_UUID") or None
    MEDIA_PANEL_SECRET: str | None = config.get_str("MEDIA_PANEL_SECRET") or None
    MEDIA_PANEL_TIMEOUT_SECONDS: float = float(config.get_int("MEDIA_PANEL_TIMEOUT_SECONDS", 10))
    MEDIA_PANEL_SIGNATURE_SCHEME: str = config.get_str("MEDIA_PANEL_SIGNATURE_SCHEME", "hmac-md5")

    # Media server RTMP ingest
    MEDIA_SERVER_HOST: str = config.get_str("MEDIA_SERVER_HOST", "localhost")
    MEDIA_SERVER_RTMP_PORT: int = config.get_int("MEDIA_SERVER_RTMP_PORT", 1935)


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
