"""
Configuration constants for the Movr asset pipeline.
"""

# --- Import Boundary ---
# Extensions (lower-case, no dot) accepted at import. Anything else is rejected.
ALLOWED_EXTS = {
    'jpg', 'jpeg', 'png', 'gif', 'tif', 'tiff', 'bmp', 'heic', 'ai', 'svg',
    'eps', 'r3d', 'cr2', 'rtn', 'pct', 'arw', 'dpx', 'psb', 'thm', 'ps',
    'psd', 'avif', 'tga', 'webp', 'dng', 'nef', 'crw',
}

# --- Filename Parsing ---
QUOTE_CHARS = ("'", '"')

# Stage A: request IDs (checked in this order, first hit wins)
REQUEST_ID_PATTERNS = [
    (r'MO\d+', 'QVC'),
    (r'PH\d+', 'HSN'),
]

# Stage B: item number prefixes
ITEM_PREFIX_LETTERS = 'ACEFHJKMQSTV'

# Stage C: month tokens for "JUL1154" style sequences
MONTH_ABBREVIATIONS = [
    'JAN', 'FEB', 'MAR', 'APR', 'MAY', 'JUN',
    'JUL', 'AUG', 'SEP', 'OCT', 'NOV', 'DEC',
]

# --- Filename Generation ---
FILENAME_PREFIX = "IMG"
SUPPLIER_TOKEN = "PH"
RETOUCHED_MARKER = "RT"
FILENAME_SEPARATOR = "_"

# --- Validation ---
# Commit is refused when more than this share of the batch has issues.
VALIDATION_FAILURE_THRESHOLD = 0.5

# --- Commit ---
# Pause between records so a host event loop stays responsive.
COMMIT_YIELD_SECONDS = 0.001
# Throughput/ETA are only reported once this much wall-clock time has passed.
THROUGHPUT_MIN_ELAPSED = 1.0
# Bound on queued background jobs (0 = unbounded).
WORKER_QUEUE_SIZE = 16

# --- Thumbnails ---
THUMBNAIL_SIZE = (160, 160)
THUMBNAIL_CACHE_ENTRIES = 200
THUMBNAIL_WORKERS = 2
THUMBNAIL_PRELOAD_LIMIT = 10

# --- Persistence ---
DB_FILENAME = "movr_session.db"
# Seconds to wait on a locked database before giving up
DB_BUSY_TIMEOUT = 5.0
MAX_RECENT_PATHS = 5
SETTINGS_VERSION = "1.0"

# --- Reporting ---
REPORT_HEADERS = [
    "Source Path",
    "Original Filename",
    "Image Type",
    "Canonical Filename",
    "Status",
    "Destination Path",
    "Notes",
]
