# videotube/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _split_origins(raw: str) -> list[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "VideoTube API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for frontend (comma separated in ALLOWED_ORIGINS)
    CORS_ORIGINS: list[str] = _split_origins(
        os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000")
    )

    # Token signing: one secret and lifetime per token class
    access_token_secret: str = os.getenv("ACCESS_TOKEN_SECRET", "dev-access-secret")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
    refresh_token_secret: str = os.getenv("REFRESH_TOKEN_SECRET", "dev-refresh-secret")
    refresh_token_expire_days: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "10"))

    # Transport cookies
    cookie_secure: bool = os.getenv("COOKIE_SECURE", "true").lower() in ("true", "1", "yes")
    cookie_samesite: str = os.getenv("COOKIE_SAMESITE", "lax")

    # Upper bounds for external calls (seconds)
    store_timeout_seconds: float = float(os.getenv("STORE_TIMEOUT_SECONDS", "5"))
    upload_timeout_seconds: float = float(os.getenv("UPLOAD_TIMEOUT_SECONDS", "120"))

    # Cloudinary (object storage / CDN)
    cloudinary_cloud_name: str | None = os.getenv("CLOUDINARY_CLOUD_NAME")
    cloudinary_api_key: str | None = os.getenv("CLOUDINARY_API_KEY")
    cloudinary_api_secret: str | None = os.getenv("CLOUDINARY_API_SECRET")
    cloudinary_upload_prefix: str | None = os.getenv("CLOUDINARY_UPLOAD_PREFIX")  # SDK default when unset
    cloudinary_folder: str | None = os.getenv("CLOUDINARY_FOLDER")

    # Incoming multipart files are staged here until uploaded
    upload_tmp_dir: str = os.getenv("UPLOAD_TMP_DIR", os.path.join(os.getcwd(), "public", "temp"))

settings = Settings()  # Instantiate configuration
