from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "exportquote"
    LOG_LEVEL: str = "INFO"

    # Fallbacks used when the reference snapshot has no matching rule
    DEFAULT_MAX_TONS: float = 20.0
    FCL_PORT_FALLBACK_20GP_RMB: float = 3500.0
    FCL_PORT_FALLBACK_40HQ_RMB: float = 4200.0

    # Trade parameter defaults for callers that omit them (HTTP surface only)
    DEFAULT_FX_RATE: float = 7.2
    DEFAULT_MARGIN_PCT: float = 0.10

    class Config:
        env_file = ".env"

    def fcl_port_fallback(self, container_type: str) -> float:
        if container_type == "40HQ":
            return self.FCL_PORT_FALLBACK_40HQ_RMB
        return self.FCL_PORT_FALLBACK_20GP_RMB


settings = Settings()
