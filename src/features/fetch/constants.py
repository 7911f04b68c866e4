"""HTTP constants for the feature fetch layer.

Centralizes all HTTP-related constants to avoid duplication across modules.
"""

HTTP_STATUS_OK = 200
HTTP_STATUS_NOT_MODIFIED = 304

# Path segment appended to a base URL that does not already name the endpoint
FEATURES_PATH = "features"

# Response Size Limits
DEFAULT_MAX_RESPONSE_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB

# Chunk size for streaming reads
DEFAULT_CHUNK_SIZE = 8192

DEFAULT_TIMEOUT_SECONDS = 10.0

# Identification headers understood by the toggle server
APP_NAME_HEADER = "UNLEASH-APPNAME"
INSTANCE_ID_HEADER = "UNLEASH-INSTANCEID"
