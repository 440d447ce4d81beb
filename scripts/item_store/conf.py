"""Item store - central path and format configuration."""

from pathlib import Path

USER_HOME = Path.home()
STORE_HOME = USER_HOME / ".item_store"

LOG_FILE = STORE_HOME / "store.log"

# =============================================================================
# PERSISTENCE FORMAT
# =============================================================================

ROOT_TAG = "Storage"
ITEM_TAG = "Item"

# Attributes every item element carries, in emission order.
TYPE_ATTR = "Type"
ID_ATTR = "ID"
NAME_ATTR = "Name"

LAST_ID_ATTR = "LastID"
ITEMS_COUNT_ATTR = "ItemsCount"

# Non-clean text goes into x:<attr> as base64 of UTF-16-LE.
ENCODED_PREFIX = "x"
ENCODED_NS = "base64"
TEXT_ENCODING = "utf-16-le"
