"""Centralized constants for Tool Farm."""

# Upstream release sources
MANIFEST_URL = (
    "https://github.com/Kyou-Izumi/advanced-discord-owo-tool-farm/raw/refs/heads/main/package.json"
)
ARCHIVE_URL = "https://github.com/Kyou-Izumi/advanced-discord-owo-tool-farm/archive/master.zip"
MANIFEST_FILE = "manifest.json"

# Sent with every update request
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/58.0.3029.110 Safari/537"
)

# Network timeouts (seconds)
MANIFEST_TIMEOUT = 10.0
ARCHIVE_TIMEOUT = 30.0

# Retry policy for update requests
MAX_RETRIES = 3
INITIAL_RETRY_DELAY = 1.0
BACKOFF_MULTIPLIER = 2.0

# Dependency install timeout (seconds)
INSTALL_TIMEOUT = 600

# Exit status of the process that hands off to a restarted instance
RESTART_EXIT_CODE = 1

# Logging
LOG_FILE_PATH = "logs/console.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUP_COUNT = 5
