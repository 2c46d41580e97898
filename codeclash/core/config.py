"""
CodeClash configuration
Environment-driven settings for MongoDB, Judge0, OpenRouter and auth
"""

import os
from typing import Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Auth
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
JWT_ALGORITHM = "HS256"

# Judge0 (code execution)
JUDGE0_API_URL = os.getenv("JUDGE0_API_URL", "https://judge0-ce.p.rapidapi.com")
RAPIDAPI_KEY = os.getenv("RAPIDAPI_KEY", "")
RAPIDAPI_HOST = os.getenv("RAPIDAPI_HOST", "judge0-ce.p.rapidapi.com")
JUDGE0_TIMEOUT_SECONDS = float(os.getenv("JUDGE0_TIMEOUT_SECONDS", "20"))
JUDGE0_MOCK_FALLBACK = _env_bool("JUDGE0_MOCK_FALLBACK")

# OpenRouter (AI agent)
OPENROUTER_URL = os.getenv("OPENROUTER_URL", "https://openrouter.ai/api/v1/chat/completions")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "tngtech/deepseek-r1t2-chimera:free")
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "30"))
AI_MAX_TOKENS = int(os.getenv("AI_MAX_TOKENS", "1000"))
AI_MAX_MESSAGES_PER_CHAT = int(os.getenv("AI_MAX_MESSAGES_PER_CHAT", "50"))

# HTTP
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
VERSION = os.getenv("VERSION")


class MongoDBConfig:
    """MongoDB connection settings"""

    def __init__(
        self,
        db_name: str = "codeClash",
        uri: Optional[str] = None,
        host: str = "localhost",
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.db_name = db_name
        self.uri = uri
        self.host = host
        self.username = username
        self.password = password

    def get_connection_string(self) -> str:
        """Build MongoDB connection string"""
        if self.uri:
            return self.uri
        if self.username and self.password:
            return (
                f"mongodb+srv://{quote_plus(self.username)}:{quote_plus(self.password)}@"
                f"{self.host}/?retryWrites=true&w=majority"
            )
        return f"mongodb://{self.host}:27017"


def get_mongo_config_from_env() -> MongoDBConfig:
    """
    Create MongoDB config from environment variables

    Environment variables:
        MONGO_URL: Full connection URI (overrides other settings)
        DB_NAME: Database name (default: codeClash)
        DB_HOST: Host or Atlas cluster address (default: localhost)
        DB_USER: Username (optional)
        DB_PASS: Password (optional)
    """
    return MongoDBConfig(
        db_name=os.getenv("DB_NAME", "codeClash"),
        uri=os.getenv("MONGO_URL"),
        host=os.getenv("DB_HOST", "localhost"),
        username=os.getenv("DB_USER"),
        password=os.getenv("DB_PASS"),
    )
