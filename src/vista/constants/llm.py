"""Model provider configuration.

Default models and timing parameters for the vision, embedding and
summarization calls. All three run against a local Ollama server by default.
"""

# =============================================================================
# Provider
# =============================================================================

DEFAULT_PROVIDER = "ollama"
DEFAULT_OLLAMA_ENDPOINT = "http://localhost:11434"

# =============================================================================
# Models
# =============================================================================

DEFAULT_VISION_MODEL = "llava:34b"
DEFAULT_EMBEDDING_MODEL = "nomic-embed-text:latest"
DEFAULT_SUMMARIZATION_MODEL = "gemma3:4b"

# =============================================================================
# Deadlines and Retries
# =============================================================================
# Every provider call carries REQUEST_TIMEOUT_SECONDS. A call that runs past it
# is treated as a transient failure and retried with exponential backoff
# (BASE_RETRY_DELAY_MS * 2**attempt) up to MAX_ATTEMPTS invocations.

REQUEST_TIMEOUT_SECONDS = 300.0
MAX_ATTEMPTS = 3
BASE_RETRY_DELAY_MS = 1000

# =============================================================================
# Model Switching
# =============================================================================
# Ollama can report a model as unloaded before its GPU memory is reclaimed.
# After flushing, the orchestrator waits SETTLE_INTERVAL_SECONDS before the
# next model is requested.

SETTLE_INTERVAL_SECONDS = 1.0
ADMIN_TIMEOUT_SECONDS = 10.0
