from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "MTG Overseer"
    debug: bool = False

    # Local store: data_dir / database_name
    database_name: str = "mtg_overseer.db"
    data_dir: Path = Path("data")

    scryfall_api_url: str = "https://api.scryfall.com"
    scryfall_user_agent: str = "MTGOverseer/1.0"

    # Scryfall asks for 50-100ms between requests
    scryfall_request_delay: float = 0.1
    scryfall_timeout: float = 30.0


settings = Settings()
