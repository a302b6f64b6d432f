from pydantic import BaseModel
import os
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseModel):
    SECRET_KEY: str = os.getenv("SECRET_KEY", "secret")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "720"))
    CORS_ORIGINS: list[str] = ["*"]
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Document store
    MONGO_URI: str | None = os.getenv("MONGO_URI")
    MONGO_DB_NAME: str = os.getenv("MONGO_DB_NAME", "folio_cms")

    # Public page / API cache
    REDIS_HOST: str | None = os.getenv("REDIS_HOST")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_PASSWORD: str | None = os.getenv("REDIS_PASSWORD")
    CACHE_TTL: int = int(os.getenv("CACHE_TTL", "60"))

    # Blob storage: "local" writes under UPLOAD_DIR, "s3" uses S3_BUCKET
    BLOB_BACKEND: str = os.getenv("BLOB_BACKEND", "local")
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "public")
    UPLOAD_URL_PREFIX: str = os.getenv("UPLOAD_URL_PREFIX", "")
    S3_BUCKET: str | None = os.getenv("S3_BUCKET")
    AWS_ACCESS_KEY_ID: str | None = os.getenv("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY: str | None = os.getenv("AWS_SECRET_ACCESS_KEY")
    AWS_REGION: str | None = os.getenv("AWS_REGION", "us-east-2")

    # Collection schemas (*.schema.json); defaults to the bundled ones
    SCHEMA_DIR: str | None = os.getenv("SCHEMA_DIR")


settings = Settings()
