"""Shared constants for the ztln engine."""

# Location expressions
HEAD = "HEAD"
DEFAULT_PATH = "main"
SHORT_ID_LENGTH = 8

# Repository layout
META_DIR = "meta"
NOTES_DIR = "notes"
TOPICS_DIR = "topics"
PATHS_DIR = "paths"
INDEX_FILE = "index"
CURRENT_TOPIC_FILE = "_CURRENT"
CURRENT_PATH_FILE = "_HEAD"

# Configuration
BASE_DIR_ENV = "ZTLN_BASE_DIR"
LOG_LEVEL_ENV = "ZTLN_LOG_LEVEL"
LOG_FILE_ENV = "ZTLN_LOG_FILE"
DEFAULT_BASE_DIR_NAME = ".ztln"
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_HISTORY_LIMIT = 20
