# pathway_transfer/utils/config.py
"""
Central configuration file for the pathway transfer engine.

Contains static application settings, interchange format identifiers and
clipboard defaults. User-adjustable values live in the SettingsManager;
the constants here are their defaults.
"""

# ==============================================================================
# STATIC APPLICATION CONFIGURATION
# ==============================================================================

APP_VERSION = "1.0.0"
APP_NAME = "Pathway Transfer"
ORGANIZATION_NAME = "PathwayTransfer-Devs"

# --- Interchange format (GPML 2021) ---
GPML_NAMESPACE = "http://pathvisio.org/GPML/2021"
GPML_FILE_EXTENSION = ".gpml"

# MIME types used on the transfer medium
MIME_TYPE_TEXT = "text/plain"
MIME_TYPE_URI_LIST = "text/uri-list"

# Source tag of a metadata element synthesized for a copy that did not include
# one. A paste recognizes it and discards it when the target already has one.
INFO_DATASOURCE = "COPIED"

# Prefix for generated element ids; GPML ids must not start with a digit.
ELEMENT_ID_PREFIX = "id"


# ==============================================================================
# PASTE DEFAULTS
# ==============================================================================

# Offset (in diagram units) added per repeated paste of the same clipboard data
DEFAULT_PASTE_OFFSET = 10.0

DEFAULT_PAYLOAD_PRETTY_PRINT = True
