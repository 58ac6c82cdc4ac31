from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DEBUG_MODE: bool = False
    LOG_FILE: str = "wavebars.log"
    LOG_LEVEL: str = "INFO"

    # Live sampling / render cadence
    SAMPLE_INTERVAL_MS: float = 50.0
    SETTLE_DELAY_MS: float = 50.0
    FRAME_RATE: float = 60.0

    # Analysis node
    FFT_SIZE: int = 2048
    TIMELINE_SMOOTHING: float = 0.4
    SPECTRUM_SMOOTHING: float = 0.8

    # Capture backend
    CAPTURE_SAMPLE_RATE: int = 44100
    CAPTURE_BLOCK_SIZE: int = 1024

    DECODE_CACHE_SIZE: int = 32

    # Headless canvas defaults (CLI / service)
    DEFAULT_CANVAS_WIDTH: int = 800
    DEFAULT_CANVAS_HEIGHT: int = 120
    DEFAULT_DEVICE_PIXEL_RATIO: float = 1.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore" # Ignore extra env vars
    )

settings = Settings()
