from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    openai_api_key: str = ""
    anthropic_api_key: str = ""
    gemini_api_key: str = ""

    # Completion service used to analyze transcripts
    completion_provider: str = "openai"
    completion_model: str = ""
    completion_temperature: float = 0.7
    completion_max_tokens: int = 1000

    # AssemblyAI speech-to-text
    assemblyai_api_key: str = ""
    transcription_language: str = "en"
    transcription_poll_attempts: int = 30
    transcription_poll_interval: float = 1.0  # seconds

    notion_api_key: str = ""
    notion_database_id: str = ""

    supabase_url: str = ""
    supabase_key: str = ""
    supabase_table: str = "brain_dump_database"

    # Sentry error tracking
    sentry_dsn: str = ""
    sentry_environment: str = "production"

    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def has_openai(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def has_anthropic(self) -> bool:
        return bool(self.anthropic_api_key)

    @property
    def has_gemini(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def has_completion(self) -> bool:
        return self.has_openai or self.has_anthropic or self.has_gemini

    @property
    def has_assemblyai(self) -> bool:
        return bool(self.assemblyai_api_key)

    @property
    def has_notion(self) -> bool:
        return bool(self.notion_api_key and self.notion_database_id)

    @property
    def has_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def has_sentry(self) -> bool:
        return bool(self.sentry_dsn)


settings = Settings()
