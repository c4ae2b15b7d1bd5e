"""Constants for BlockBuilder"""

# ==================== File Paths ====================
DATABASE_PATH = "data/blockbuilder.db"
LOG_FILE = "data/blockbuilder.log"
CONFIG_FILE_DEFAULT = "config.toml"

# ==================== Logging ====================
LOG_MAX_BYTES = 5 * 1024 * 1024  # 5MB
LOG_BACKUP_COUNT = 10

# ==================== Repeatable Fields ====================
REPEATER_TYPE = "repeater"
DEFAULT_MAX_NESTING_DEPTH = 2
ROOT_NESTING_DEPTH = 1
DEFAULT_ITEM_TITLE = "Item"

# ==================== Error Routing ====================
SETTLE_DELAY_MS = 150  # accordion re-render + CSS transition
SCROLL_OFFSET = 40

# ==================== Template Names ====================
TEMPLATE_FORM = "form.html.j2"
TEMPLATE_REPEATABLE = "repeatable.html.j2"

# ==================== CSS Classes ====================
CSS_ERROR = "error"
CSS_FORM_GROUP = "block-builder-form-group"
CSS_FIELD_ERROR_HIGHLIGHT = "field-error-highlight"

# ==================== Database Configuration ====================
DB_PRAGMAS = {
    "journal_mode": "wal",
    "synchronous": "NORMAL",
    "busy_timeout": 5000,
    "foreign_keys": 1,
}
DB_MAX_CONNECTIONS = 20
DB_STALE_TIMEOUT = 300  # 5 minutes
