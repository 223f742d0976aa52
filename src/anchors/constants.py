"""Default values shared by the config layer and the engine."""

SETTINGS_FILE = ".anchors.yml"

DEFAULT_SEPARATORS = [" ", ": ", " - "]
DEFAULT_PREFIXES = ["<!--", "//", "/*", "/**", "*", "#", "--", ";", "'", '"']
DEFAULT_END_TAG = "!"

DEFAULT_MATCH_FILES = "**/*"
DEFAULT_EXCLUDE_FILES = "{**/node_modules/**,**/.git/**,**/dist/**,**/out/**,**/build/**}"
DEFAULT_MAX_FILES = 250
DEFAULT_PARSE_DELAY = 500

# Workspace scan pacing
SCAN_BATCH_SIZE = 10
SCAN_PAUSE = 0.005

# Trailing comment closers, stripped from comment text and highlighted spans
COMMENT_CLOSERS = ("-->", "*/")

BEHAVIORS = ("plain", "region", "link")
SCOPES = ("file", "workspace", "hidden")
STYLE_MODES = ("tag", "comment", "full")
SORT_METHODS = ("line", "type")
PATH_FORMATS = ("full", "abbreviated", "hidden")
