from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import Optional


class Settings(BaseSettings):
    app_name: str = "Driving Motion Classifier"
    version: str = "1.0.0"

    host: str = "0.0.0.0"
    port: int = 10600

    # Classifier resources; the service stays up without them and reports model_not_ready
    model_path: Path = Path("./assets/model_lstm.pt")
    labels_path: Path = Path("./assets/label_encoder.json")

    history_path: Path = Path("./data_storage/predictions.jsonl")
    export_path: Path = Path("./data_storage/exports")
    log_path: Path = Path("./logs")
    motion_config_path: Optional[Path] = None

    auto_capture: bool = True
    auto_predict: bool = True

    max_upload_size: int = 2 * 1024 * 1024
    # Cap on the in-memory log of every captured sample used by session export
    max_collected_samples: int = 360_000

    log_level: str = "INFO"
    log_format: str = "json"

    cors_enabled: bool = True
    cors_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
