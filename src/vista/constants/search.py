"""Search and context budgeting configuration.

These settings control vector retrieval and how many retrieved image
descriptions are forwarded to the summarization model.
"""

# =============================================================================
# Result Limits
# =============================================================================
# Number of nearest neighbours requested from the vector store per query.

DEFAULT_RESULT_LIMIT = 5

# =============================================================================
# Token Budgets
# =============================================================================
# The summary prompt combines a fixed instruction block with one entry per
# selected image. MAX_CONTEXT_TOKENS caps the whole prompt. BASE_PROMPT_TOKENS
# reserves room for the instructions and the query, PER_ITEM_OVERHEAD_TOKENS
# covers the file name, similarity and formatting around each description.
# Values are in tokens (roughly 4 characters per token for English text).

MAX_CONTEXT_TOKENS = 6000
BASE_PROMPT_TOKENS = 200
PER_ITEM_OVERHEAD_TOKENS = 50
CHARS_PER_TOKEN = 4

# =============================================================================
# Placeholders
# =============================================================================
# Returned as the summary when a search ends without anything to summarize.

NO_MATCHES_SUMMARY = "No matching images found. Try a different query or index more images."
NO_EMBEDDING_SUMMARY = "Could not generate an embedding for the query."
OVER_BUDGET_SUMMARY = (
    "Matching images were found, but none of their descriptions fit within the context budget."
)
SUMMARY_UNAVAILABLE = "Summary unavailable: {reason}"
SEARCH_FAILED = "Search failed: {reason}"
