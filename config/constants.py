"""
Centralized constants for Book Studio.
All magic numbers for pagination, publishing and transport live here.
"""

# ===========================================
# PAGINATION
# ===========================================
WORDS_PER_PAGE = 250                  # reader-facing page size
MIN_PAGES_PER_CHAPTER = 1             # empty chapters still reserve a page
READING_WORDS_PER_MINUTE = 200        # reading-time estimate

# ===========================================
# PUBLISHING
# ===========================================
MIN_TOTAL_PAGES = 30                  # aggregate page floor
MIN_TAGS = 1
MAX_TAGS = 5
MAX_WEEKLY_PUBLISHES = 2              # per author, enforced server-side

# ===========================================
# DOCUMENT METADATA
# ===========================================
TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 255
SUBTITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 5000
DEFAULT_LICENSE = 'all-rights-reserved'
DEFAULT_LANGUAGE = 'en'

# ===========================================
# AUTHORING
# ===========================================
AUTOSAVE_INTERVAL_SECONDS = 5.0
DEFAULT_CHAPTER_TITLE = 'Chapter {number}'

# ===========================================
# API / TRANSPORT
# ===========================================
API_BASE_URL = 'http://localhost:8000'
API_TIMEOUT_SECONDS = 30
API_MAX_RETRIES = 3                   # retries on HTTP 429
API_RETRY_DELAY = 1.0                 # seconds, doubled per attempt
SERVER_HOST = '127.0.0.1'
SERVER_PORT = 8000

# ===========================================
# READER PREFERENCES
# ===========================================
PREFERENCES_FILE = 'data/reader_preferences.json'
DEFAULT_DEVICE_ID = 'default'

FONT_SIZE_MIN = 14
FONT_SIZE_MAX = 28
FONT_SIZE_STEP = 2
LINE_HEIGHT_MIN = 1.4
LINE_HEIGHT_MAX = 2.4
LINE_HEIGHT_STEP = 0.2
FONT_FAMILIES = [
    'Georgia',
    'Times New Roman',
    'Palatino',
    'Garamond',
    'Arial',
    'Helvetica',
    'Verdana',
]
DEFAULT_FONT_SIZE = 18
DEFAULT_LINE_HEIGHT = 1.8
DEFAULT_FONT_FAMILY = 'Georgia'
DEFAULT_THEME = 'light'
DEFAULT_WIDTH = 'normal'

# ===========================================
# LOGGING
# ===========================================
LOG_LEVEL = 'INFO'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE = 'logs/bookstudio.log'
LOG_MAX_SIZE_MB = 10
LOG_BACKUP_COUNT = 5
