
from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("invoice-enrichment-pipeline", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # LLM completion service (optional - enrichment is skipped without a key)
    llm_base_url: str | None = Field(default=None, alias="LLM_BASE_URL")
    llm_api_key: str | None = Field(default=None, alias="LLM_API_KEY")
    llm_model: str = Field("gpt-4o", alias="LLM_MODEL")
    llm_timeout_seconds: float = Field(30.0, alias="LLM_TIMEOUT_SECONDS")

    # Enrichment call parameters
    categorization_temperature: float = Field(0.2, alias="CATEGORIZATION_TEMPERATURE")
    categorization_max_tokens: int = Field(2000, alias="CATEGORIZATION_MAX_TOKENS")
    header_temperature: float = Field(0.1, alias="HEADER_TEMPERATURE")
    header_max_tokens: int = Field(1000, alias="HEADER_MAX_TOKENS")
    header_text_prefix_chars: int = Field(2000, alias="HEADER_TEXT_PREFIX_CHARS")

    # Google Document AI
    gcp_project_id: str | None = Field(default=None, alias="GOOGLE_CLOUD_PROJECT_ID")
    gcp_location: str = Field("us", alias="GOOGLE_CLOUD_LOCATION")
    gcp_processor_id: str | None = Field(default=None, alias="GOOGLE_CLOUD_PROCESSOR_ID")
    gcp_access_token: str | None = Field(default=None, alias="GOOGLE_CLOUD_ACCESS_TOKEN")
    docai_timeout_seconds: float = Field(60.0, alias="DOCAI_TIMEOUT_SECONDS")

    # Upload limits
    max_upload_bytes: int = Field(10 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")
    allowed_mime_types: str = Field("image/jpeg,image/png,application/pdf", alias="ALLOWED_MIME_TYPES")

    # CORS allowed origins (comma-separated list for production deployment)
    cors_origins: str = Field("http://localhost:3000,http://127.0.0.1:3000", alias="CORS_ORIGINS")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "populate_by_name": True}

    @property
    def enrichment_enabled(self) -> bool:
        return bool(self.llm_api_key)

    @property
    def document_ai_configured(self) -> bool:
        return bool(self.gcp_project_id and self.gcp_processor_id and self.gcp_access_token)

    @property
    def allowed_mime_type_list(self) -> list[str]:
        return [t.strip() for t in self.allowed_mime_types.split(",") if t.strip()]

settings = Settings()
