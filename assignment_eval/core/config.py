# assignment_eval/core/config.py
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "Assignment Submission & Evaluation Service"
    API_V1_PREFIX: str = "/api/v1"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    # Use PostgreSQL for production
    DATABASE_URL: str = "sqlite:///./assignment_eval.db"

    # JWT Authentication
    SECRET_KEY: str = "change-me-in-production-use-random-string"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Background work: "rq" pushes AI evaluations to Redis,
    # "inline" runs them after the response inside the API process
    TASK_QUEUE_BACKEND: str = "rq"
    REDIS_URL: str = "redis://localhost:6379/0"
    AI_EVALUATION_QUEUE: str = "ai_evaluation"
    AI_JOB_TIMEOUT: int = 600

    # Hugging Face Inference API
    HF_API_URL: str = "https://api-inference.huggingface.co/models"
    HF_API_KEY: str | None = None
    HF_PRIMARY_MODEL: str = "mistralai/Mistral-7B-Instruct-v0.2"
    HF_FALLBACK_MODEL: str = "google/flan-t5-large"
    HF_REQUEST_TIMEOUT: float = 60.0
    HF_MAX_NEW_TOKENS: int = 500
    HF_TEMPERATURE: float = 0.7
    AI_MAX_INPUT_CHARS: int = 2000

    QUICK_FEEDBACK_MIN_CHARS: int = 50
    QUICK_FEEDBACK_MAX_CHARS: int = 1000
    QUICK_FEEDBACK_MAX_SUGGESTIONS: int = 3

    # File uploads
    UPLOAD_DIR: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_UPLOAD_TYPES: list[str] = [
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "text/plain",
        "image/jpeg",
        "image/png",
        "image/gif",
    ]

    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
