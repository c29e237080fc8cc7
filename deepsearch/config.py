from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenRouter
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "openai/gpt-4o-mini"
    openrouter_model: str = ""  # optional override for every call
    available_models: str = "openai/gpt-4o-mini,google/gemini-2.0-flash-001,meta-llama/llama-3.3-70b-instruct"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 8192
    llm_request_timeout_seconds: float = 60.0

    # Web retrieval
    retrieval_max_sources: int = 10
    retrieval_min_sources: int = 5
    retrieval_batch_size: int = 5
    retrieval_fast_batch_size: int = 3
    fetch_timeout_seconds: float = 2.0
    fast_fetch_timeout_seconds: float = 1.5
    min_content_chars: int = 50
    max_body_chars: int = 600
    snippet_max_chars: int = 200
    fetch_user_agent: str = "Mozilla/5.0 (compatible; DeepSearch/1.0)"
    fetch_max_bytes: int = 512_000
    extract_in_thread: bool = True

    # Deep research
    subtask_delay_seconds: float = 1.0
    pipeline_timeout_seconds: float = 300.0
    chat_history_limit: int = 10

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"
    log_to_file: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def available_model_list(self) -> list[str]:
        return [m.strip() for m in self.available_models.split(",") if m.strip()]


settings = Settings()
