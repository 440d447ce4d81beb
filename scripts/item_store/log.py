"""
Item store - Logging Module
Provides centralized logging functionality for the store.

Logging is best effort: an unwritable LOG_FILE never fails a store operation.
"""
import sys
from datetime import datetime

from . import conf

# =============================================================================
# CONFIGURATION
# =============================================================================

LOG = True  # Set to False to disable logging
LOG_TO_STDERR = False  # Library code stays quiet on stderr unless asked
first_line = True
# =============================================================================
# LOGGING
# =============================================================================

def _append(log_line: str) -> bool:
    """Append one line to LOG_FILE. Returns False when the file can't be written."""
    try:
        conf.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        with open(conf.LOG_FILE, "a", encoding="utf-8") as f:
            f.write(log_line)
    except OSError:
        return False
    return True


def store_log(message: str) -> None:
    """Append log message to store.log if LOG is enabled."""
    global first_line
    if not LOG:
        return
    if first_line:
        first_line = False
        store_log("--- New Item Store Session ---")
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    log_line = f"[{timestamp}] {message}\n"
    if LOG_TO_STDERR:
        sys.stderr.write(log_line)
    _append(log_line)


def store_log_print() -> None:
    """Print the contents of the log file to stdout."""
    if conf.LOG_FILE.exists():
        log_contents = conf.LOG_FILE.read_text(encoding="utf-8")
        if log_contents:
            print(log_contents, end="")
        else:
            print("[Item Store Log is empty]")
    else:
        print("[Item Store Log file does not exist]")


def store_log_clear() -> None:
    """Delete the log file."""
    if conf.LOG_FILE.exists():
        conf.LOG_FILE.unlink()
