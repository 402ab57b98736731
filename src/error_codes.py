"""Stable failure codes for fetch and storage operations.

Used by: news_fetch, news_parse, kv_store, bookmarks, logging, /feed error field.
"""

FETCH_TIMEOUT = "FETCH_TIMEOUT"
FETCH_TRANSIENT = "FETCH_TRANSIENT"
RATE_LIMITED = "RATE_LIMITED"
FETCH_PERMANENT = "FETCH_PERMANENT"
FETCH_DISABLED = "FETCH_DISABLED"      # No API key configured
PARSE_ERROR = "PARSE_ERROR"

  # Local storage codes
STORAGE_READ_FAIL = "STORAGE_READ_FAIL"    # Unavailable db, malformed value
STORAGE_WRITE_FAIL = "STORAGE_WRITE_FAIL"  # Write rejected, nothing changed
