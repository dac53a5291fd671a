"""Configuration constants.

Re-exports all constants for convenient importing:
    from vista.constants import MAX_CONTEXT_TOKENS, BASE_PROMPT_TOKENS
"""

from vista.constants.search import *  # noqa: F403
from vista.constants.llm import *  # noqa: F403
from vista.constants.files import *  # noqa: F403
