"""Constants for privstore."""

# Configuration
CONFIG_FILE = "privstore.yaml"
CONFIG_ENV_VAR = "PRIVSTORE_CONFIG"
AZURE_CONNECTION_ENV_VAR = "AZURE_STORAGE_CONNECTION_STRING"

# Default data directory name (under the platform user data dir)
APP_NAME = "privstore"
APP_AUTHOR = "privstore"

# Domain separation tag mixed into every record digest
DIGEST_DOMAIN = b"privstore"

# Version
PRIVSTORE_VERSION = "0.1.0"
