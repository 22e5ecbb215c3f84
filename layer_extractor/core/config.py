"""Configuration for map-service queries and application settings."""

from dataclasses import dataclass

# Query appended to every layer endpoint: all records, all fields, JSON body
QUERY_SUFFIX = "query?where=1=1&f=json&outFields=*"

# Subdirectory (under each catalog output directory) receiving CSV tables
CSV_SUBDIRECTORY = "csv"

RAW_LAYER_EXTENSION = ".json"
CSV_EXTENSION = ".csv"

CSV_DELIMITER = ","
CSV_LINE_TERMINATOR = "\n"

# Download settings (seconds); matches aiohttp's own default total timeout
DOWNLOAD_TIMEOUT = 300

DEFAULT_LOG_FILE = "log.txt"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# CSV escaping modes
ESCAPING_LEGACY = "legacy"
ESCAPING_RFC4180 = "rfc4180"
ESCAPING_MODES = (ESCAPING_LEGACY, ESCAPING_RFC4180)


@dataclass(frozen=True)
class LanguageInfo:
    """Display metadata for a catalog language."""

    code: str
    name_en: str
    name_native: str


# Languages served by the reference deployment; other codes are accepted as-is
LANGUAGES: dict[str, LanguageInfo] = {
    "en": LanguageInfo(code="en", name_en="English", name_native="English"),
    "fr": LanguageInfo(code="fr", name_en="French", name_native="Français"),
}


def language_display_name(code: str) -> str:
    """Get a human-readable name for a catalog language code."""
    info = LANGUAGES.get(code)
    if info is None:
        return code
    return f"{info.name_en} ({info.name_native})" if info.name_en != info.name_native else info.name_en
