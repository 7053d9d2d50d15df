"""
Global configuration and default settings for the UI bug scanner.

Defines paths, timeouts, concurrency limits, scoring tables and report settings.
All modules should import settings from here rather than hardcoding values.
"""

from pathlib import Path

# ============================================================================
# PROJECT PATHS
# ============================================================================

PROJECT_ROOT = Path(__file__).parent
TEMPLATE_DIR = PROJECT_ROOT / "reporter" / "templates"

# Reports land in the current working directory unless a path is given
REPORT_DIR = Path.cwd() / "reports"

# ============================================================================
# HTTP CLIENT SETTINGS
# ============================================================================

# Request timeout in seconds
REQUEST_TIMEOUT = 10

# Maximum number of retries for failed requests
MAX_RETRIES = 2

# User-Agent header to use for sitemap and link-status requests
USER_AGENT = "UIBugScanner/1.0 (+https://github.com/ui-bug-scanner)"

# Delay between HTTP requests in seconds (per client)
HTTP_REQUEST_DELAY = 0.0

# Follow redirects
FOLLOW_REDIRECTS = True

# Verify SSL certificates
VERIFY_SSL = True

# Number of consecutive failures on a URL before skipping further requests
CIRCUIT_BREAKER_THRESHOLD = 3

# ============================================================================
# CRAWLER SETTINGS
# ============================================================================

DEFAULT_CRAWL_DEPTH = 3
DEFAULT_MAX_PAGES = 20

# Pages scanned in parallel per batch
DEFAULT_CONCURRENCY = 2
MAX_CONCURRENCY = 8

# Delay between batches in seconds
DEFAULT_REQUEST_DELAY = 0.5

# Sitemap discovery
SITEMAP_PATH = "/sitemap.xml"
MAX_NESTED_SITEMAPS = 5
MAX_SITEMAP_DEPTH = 3

# Resource extensions that are never pages
SKIP_EXTENSIONS = (
    '.jpg', '.jpeg', '.png', '.gif', '.webp', '.svg', '.ico',
    '.pdf', '.zip', '.tar', '.gz',
    '.css', '.js', '.json', '.xml',
    '.mp3', '.mp4', '.wav', '.avi', '.mov',
    '.woff', '.woff2', '.ttf', '.eot',
    '.map',
)

# Path fragments for API endpoints and framework/CDN assets
SKIP_PATH_PREFIXES = ('/api/', '/_next/', '/static/', '/assets/', '/cdn-cgi/')

# ============================================================================
# RENDERING SETTINGS
# ============================================================================

# Hard navigation timeout (fatal for the page)
NAVIGATION_TIMEOUT_MS = 20000

# Best-effort "network settled" wait (never fatal)
NETWORK_IDLE_TIMEOUT_MS = 10000

DEFAULT_SCREENSHOT_QUALITY = 60

# Screenshots larger than this are dropped from the result
MAX_SCREENSHOT_BYTES = 500000

# Page-level script errors converted to findings per viewport
MAX_CONSOLE_ERRORS = 5

# Console messages that are not actionable
CONSOLE_NOISE_PATTERNS = ('Failed to load resource', 'net::ERR_', '[violation]')

DESKTOP_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)
MOBILE_USER_AGENT = (
    'Mozilla/5.0 (iPhone; CPU iPhone OS 16_0 like Mac OS X) AppleWebKit/605.1.15 '
    '(KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1'
)

# (width, height, label, is_mobile)
DEFAULT_VIEWPORTS = [
    (1440, 900, 'Desktop', False),
    (768, 1024, 'Tablet', False),
    (390, 844, 'Mobile', True),
]

# ============================================================================
# CHECK SETTINGS
# ============================================================================

# Findings kept per check plugin and viewport
MAX_BUGS_PER_CATEGORY = 10

# Accessibility codes collapsed into one summary finding per page
GROUPED_A11Y_CODES = ('A11Y_REGION', 'A11Y_LANDMARK_ONE_MAIN')

# Link status checks made by the navigation check per page
MAX_LINK_CHECKS = 20

# Minimum touch target edge in CSS pixels
MIN_TOUCH_TARGET = 32

# Controls tested for obstruction per viewport
CLICK_SAMPLE_SIZE = 10

# Scroll steps of 100px before the scroll pass gives up (infinite feeds)
MAX_SCROLL_STEPS = 200

# Text elements compared pairwise when looking for overlaps
MAX_OVERLAP_CANDIDATES = 300

# Characters per line beyond which text blocks are hard to read
MAX_LINE_CHARACTERS = 120

# ============================================================================
# DEDUPLICATION & SCORING
# ============================================================================

DEDUP_MESSAGE_PREFIX = 50

SEVERITY_ORDER = ['critical', 'major', 'minor', 'optimization']

# Score penalty per finding
SEVERITY_PENALTY = {
    'critical': 12,
    'major': 6,
    'minor': 2,
    'optimization': 1,
}

# Max penalty a single code can accumulate
MAX_PENALTY_PER_CODE = {
    'critical': 30,
    'major': 20,
    'minor': 10,
    'optimization': 5,
}

DIMINISHING_FACTOR = 0.3

# Accumulated noise alone never drives a page below 30
GLOBAL_MAX_PENALTY = 70

# Priority base weight per severity
PRIORITY_WEIGHT = {
    'critical': 40,
    'major': 25,
    'minor': 10,
    'optimization': 5,
}

# Empirically tuned visibility/impact multipliers; unknown codes use 1.0
IMPACT_MULTIPLIERS = {
    'LAYOUT_OVERFLOW': 1.5,
    'VISUAL_OVERLAP': 1.3,
    'A11Y_COLOR_CONTRAST': 1.4,
    'UNCLICKABLE_ELEMENT': 1.8,
    'NAV_BROKEN_LINK': 1.6,
    'NAV_SERVER_ERROR': 2.0,
    'CONSOLE_ERROR': 1.2,
    'MEDIA_BROKEN': 1.4,
    'FORM_MISSING_LABEL': 1.3,
}

FRIENDLY_NAMES = {
    'LAYOUT_OVERFLOW': 'Horizontal Scroll',
    'LAYOUT_CLIPPED': 'Clipped Content',
    'VISUAL_OVERLAP': 'Element Overlap',
    'VISUAL_LONG_LINES': 'Line Length Too Wide',
    'SMALL_TARGET': 'Touch Target Too Small',
    'EMPTY_LINK': 'Broken or Empty Link',
    'A11Y_IMAGE_ALT': 'Missing Image Alt Text',
    'A11Y_BUTTON_NAME': 'Unlabelled Button',
    'A11Y_HTML_LANG': 'Missing Page Language',
    'A11Y_COLOR_CONTRAST': 'Low Color Contrast',
    'A11Y_REGION': 'Missing Landmarks',
    'A11Y_LANDMARK_ONE_MAIN': 'Missing Main Landmark',
    'A11Y_DUPLICATE_ID': 'Duplicate Element ID',
    'TYPO': 'Spelling Error',
    'MEDIA_BROKEN': 'Broken Image/Media',
    'UNCLICKABLE_ELEMENT': 'Element Unclickable',
    'SCROLL_ERROR': 'Scrolling Failure',
    'NAV_BROKEN_LINK': 'Broken Internal Link',
    'NAV_SERVER_ERROR': 'Link to Server Error',
    'NAV_MISSING_ANCHOR': 'Missing Anchor Target',
    'NAV_DUPLICATE_TEXT': 'Duplicate Navigation Text',
    'FORM_MISSING_LABEL': 'Unlabelled Form Field',
    'FORM_NO_SUBMIT': 'Form Without Submit',
    'FORM_PASSWORD_NO_AUTOCOMPLETE': 'Password Autocomplete Missing',
    'CONSOLE_ERROR': 'Browser Console Error',
}

# ============================================================================
# REPORTING SETTINGS
# ============================================================================

# Codes with more occurrences than this collapse into one report entry
REPORT_COLLAPSE_THRESHOLD = 3

# Findings shown in the console summary
CONSOLE_TOP_FINDINGS = 10

REPORT_FORMATS = ['json', 'markdown', 'both']

# ============================================================================
# LOGGING
# ============================================================================

LOG_FORMAT = '[%(asctime)s] %(levelname)s [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
