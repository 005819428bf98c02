"""Extractor configuration - Parser backend, special tokens, column heuristics"""
import os

# HTML parser handed to BeautifulSoup ("html.parser", "lxml", "html5lib")
HTML_PARSER = os.getenv("EXTRACTOR_HTML_PARSER", "html.parser")

# Locator denoting the node the field is resolved against
SELF_LOCATOR = ":self"

# Literal meaning "the site does not provide this field"
NOT_APPLICABLE = "N/A"

# Column index value for fields no header column carries
UNMAPPED = -1

# Cells of a table row / header row when the schema does not name them
DEFAULT_CELL_LOCATOR = ":scope > td"
DEFAULT_HEADER_CELL_LOCATOR = ":scope > th, :scope > td"

# Header heuristics, tried in order on every header cell.
# Format: (field, locator, on_self) - on_self tests the cell itself
# instead of searching inside it.
COLUMN_HEURISTICS = [
    ("comments", "a[href*='comments']", False),
    ("time", "a[href*='age']", False),
    ("size", "a[href*='size']", False),
    ("seeders", "a[href*='seed']", False),
    ("leechers", "a[href*='leech']", False),
    ("completed", "a[href*='complete']", False),
    ("category", ".torrents-icon", True),
]

# Fields a tabular listing can map to a column
COLUMN_FIELDS = [
    "time", "size", "seeders", "leechers", "completed", "comments", "author", "category",
]

# Suffixes stripped from category display names
DEFAULT_CATEGORY_SUFFIXES = [" Torrent"]

# Colors for well-known tags
BASE_TAG_COLORS = {
    "Free": "blue",
    "2xFree": "green",
    "H&R": "red",
    "Excl.": "deep-orange darken-1",
}
DEFAULT_TAG_COLOR = os.getenv("EXTRACTOR_DEFAULT_TAG_COLOR", "grey")

# Result quality
EXTRACTION_STATS = {
    "warn_threshold": float(os.getenv("EXTRACTOR_WARN_THRESHOLD", "0.7")),  # Warn if valid rate < 70%
}
