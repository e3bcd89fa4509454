from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from dotenv import load_dotenv

# Force load .env from project root
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Supabase project (data, auth, realtime, storage)
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None     # anon / publishable key
    PHOTO_BUCKET: str = "claim-photos"

    # Nominatim geocoding (usage policy: max 1 request per second)
    GEOCODER_URL: str = "https://nominatim.openstreetmap.org/search"
    GEOCODER_USER_AGENT: str = "auto-appraisal-mvp"
    GEOCODER_MIN_INTERVAL_SECONDS: float = 1.1
    GEOCODER_TIMEOUT_SECONDS: float = 10.0

    # photo compression targets
    PHOTO_MAX_DIMENSION: int = 1600
    PHOTO_MAX_SIZE_MB: float = 1.5

    # map display
    MAP_TILE_URL: str = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
    MAP_ATTRIBUTION: str = "&copy; OpenStreetMap contributors"
    MAP_ZOOM: int = 15

    # service worker cache bucket
    CACHE_VERSION: str = "v4"

    DISPLAY_TIMEZONE: str = "UTC"
    SESSION_COOKIE_NAME: str = "appraisal_session"
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",   # vite dev server
        "http://127.0.0.1:5173",
    ]

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "app.log"

settings = Settings()
