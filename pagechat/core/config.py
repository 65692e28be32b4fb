from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    APP_NAME: str = "pagechat"
    ENV: str = "local"
    DATA_DIR: str = "./data"

    # preference store (selected model survives restarts)
    PREFS_DB_PATH: str = "./data/prefs.sqlite3"
    PREFS_NAMESPACE: str = "local"
    # how often other instances' writes are picked up (seconds)
    PREFS_POLL_INTERVAL: float = 1.0

    # llm
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    # used when nothing is persisted yet and the service has it installed
    OLLAMA_DEFAULT_MODEL: str = "mistral-nemo"
    OLLAMA_TIMEOUT: float = 180.0
    OLLAMA_LIST_TIMEOUT: float = 5.0

    # summarization knobs
    # 10,000 chars is roughly 2,500 tokens
    MAX_CHUNK_LENGTH: int = 10000
    # raw page text embedded in chat prompts; never below MAX_CHUNK_LENGTH
    FALLBACK_CONTEXT_MAX_CHARS: int = 50000

    # page fetching
    FETCH_TIMEOUT: float = 30.0

    # CORS (for browser-based UIs)
    # Comma-separated list of allowed origins.
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8501,http://127.0.0.1:8501"

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
