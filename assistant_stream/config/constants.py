"""
Protocol and service constants.

Pricing values live in config/models.py.
"""

# Pricing metadata (for auditability)
LAST_VERIFIED_PRICING_ISO = "2025-08-14"  # YYYY-MM-DD

PRICING_SOURCE_URLS = (
    "https://platform.openai.com/pricing",
    "https://openai.com/api/pricing",
    "https://models.dev/api.json",
)

# Server-sent events
SSE_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}
SSE_DONE_FRAME = "data: [DONE]\n\n"

# Error texts surfaced in `error` protocol events
RUN_FAILED_MESSAGE = "Assistant run failed unexpectedly"
UNKNOWN_STREAM_ERROR_MESSAGE = "Unknown assistant stream error"

# Cache lifetimes (seconds)
DEFAULT_CATALOG_TTL_SECONDS = 24 * 60 * 60
DEFAULT_STREAM_TTL_SECONDS = 24 * 60 * 60

# Document ingestion
MAX_DOCUMENT_CHARS = 15000
ATTACHED_DOCUMENTS_HEADER = "[Attached documents]"

# Messages allowed per user type within RATE_LIMIT_WINDOW_HOURS
ENTITLEMENTS_BY_USER_TYPE = {
    "guest": {"max_messages_per_day": 20},
    "regular": {"max_messages_per_day": 100},
}
RATE_LIMIT_WINDOW_HOURS = 24

TITLE_MAX_CHARS = 80
TITLE_INSTRUCTIONS = (
    "Generate a short title based on the first message a user begins a "
    "conversation with. Keep it under 80 characters. Do not use quotes or colons."
)
