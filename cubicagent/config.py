from pydantic import BaseModel
import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Load .env file if it exists (before reading os.getenv)
_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    with open(_env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                # Environment wins over .env
                if key not in os.environ:
                    os.environ[key] = value


def _sanitize_ascii(val: str) -> str:
    """Strip non-ASCII characters from config values (prevents encoding errors)"""
    return val.encode('ascii', errors='ignore').decode('ascii').strip()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_ms(name: str, default: str) -> float:
    """Timeouts are configured in milliseconds; Settings holds seconds."""
    return float(os.getenv(name, default)) / 1000


class Settings(BaseModel):
    # OpenAI backend
    openai_api_key: str = _sanitize_ascii(os.getenv("OPENAI_API_KEY", ""))
    openai_base_url: str = _sanitize_ascii(os.getenv("OPENAI_BASE_URL", ""))
    openai_model: str = _sanitize_ascii(os.getenv("OPENAI_MODEL", "gpt-4o"))
    openai_temperature: float = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
    openai_session_max_tokens: int = int(os.getenv("OPENAI_SESSION_MAX_TOKENS", "4096"))
    openai_timeout: float = _env_ms("OPENAI_TIMEOUT", "600000")
    openai_max_retries: int = int(os.getenv("OPENAI_MAX_RETRIES", "2"))

    # Summarizer tools are only built when a model is set
    summarizer_model: str = _sanitize_ascii(os.getenv("OPENAI_SUMMARIZER_MODEL", ""))

    # Dispatch / session limits
    session_max_iteration: int = int(os.getenv("DISPATCH_SESSION_MAX_ITERATION", "10"))
    dispatch_timeout: float = _env_ms("DISPATCH_TIMEOUT", "30000")
    parallel_tool_calls: bool = _env_bool("DISPATCH_PARALLEL_TOOL_CALLS")

    # Dispatcher (external tools)
    cubicler_url: str = _sanitize_ascii(os.getenv("CUBICLER_URL", "http://localhost:1503"))
    mcp_call_timeout: float = _env_ms("MCP_CALL_TIMEOUT", "10000")

    # HTTP binding
    agent_host: str = os.getenv("AGENT_HOST", "0.0.0.0")
    agent_port: int = int(os.getenv("AGENT_PORT", "3000"))
    dispatch_endpoint: str = os.getenv("DISPATCH_ENDPOINT", "/")

    # Memory store: MEMORY_FACTORY is "module:callable"; it receives Settings and returns a MemoryRepository
    memory_enabled: bool = _env_bool("MEMORY_ENABLED")
    memory_factory: str = os.getenv("MEMORY_FACTORY", "")
    memory_db_path: str = os.getenv("MEMORY_DB_PATH", "./memories.db")
    # Short-term memory budget
    memory_max_tokens: int = int(os.getenv("MEMORY_MAX_TOKENS", "2000"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()

# Log config for debugging
_oai_key = '***' + settings.openai_api_key[-4:] if len(settings.openai_api_key) > 4 else 'EMPTY'
logger.info(f"Config: OpenAI → {settings.openai_base_url or 'default'} (key={_oai_key}), model={settings.openai_model}")
logger.info(f"Config: max iterations={settings.session_max_iteration}, summarizer={settings.summarizer_model or 'off'}")
logger.info(f"Config: memory={settings.memory_factory if settings.memory_enabled else 'off'}")
