from pathlib import Path

from pydantic_settings import BaseSettings

_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    app_name: str = "Chatbot"
    debug: bool = False

    # Paths
    db_path: Path = _ROOT / "data" / "chat.db"
    uploads_dir: Path = _ROOT / "uploads"

    # LLM
    llm_provider: str = "gemini"
    gemini_api_key: str = ""
    default_chat_model: str = "gemini-2.5-flash"
    title_model: str = "gemini-2.5-flash-lite"
    artifact_model: str = "gemini-2.5-flash-lite"
    max_steps: int = 5
    reasoning_budget_tokens: int = 10_000
    tools_requiring_approval: list[str] = []

    # Uploads
    max_upload_bytes: int = 5 * 1024 * 1024
    allowed_upload_types: list[str] = ["image/jpeg", "image/png"]

    # Principal used while there is no authentication
    default_user_id: str = "default-user-id"
    default_user_email: str = "default@localhost"

    # Server
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: list[str] = ["*"]

    model_config = {
        "env_file": str(_ROOT / ".env"),
        "env_prefix": "CHATBOT_",
    }

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.db_path}"


settings = Settings()
