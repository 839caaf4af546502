from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	gemini_timeout_seconds: float = Field(default=30.0, validation_alias="GEMINI_TIMEOUT_SECONDS")
	# Vertex configuration
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")

	# Language pair: the learner studies target_language and reads explanations in native_language
	target_language: str = Field(default="English", validation_alias="STUDYHUB_TARGET_LANGUAGE")
	native_language: str = Field(default="Vietnamese", validation_alias="STUDYHUB_NATIVE_LANGUAGE")
	target_locale: str = Field(default="en-US", validation_alias="STUDYHUB_TARGET_LOCALE")
	native_locale: str = Field(default="vi-VN", validation_alias="STUDYHUB_NATIVE_LOCALE")

	# Flashcard illustrations
	image_base_url: str = Field(default="https://image.pollinations.ai/prompt", validation_alias="STUDYHUB_IMAGE_BASE_URL")
	image_width: int = Field(default=400, validation_alias="STUDYHUB_IMAGE_WIDTH")
	image_height: int = Field(default=300, validation_alias="STUDYHUB_IMAGE_HEIGHT")

	# Gamification
	xp_per_level: int = Field(default=100, validation_alias="STUDYHUB_XP_PER_LEVEL")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
