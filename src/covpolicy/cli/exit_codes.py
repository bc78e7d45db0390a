# mirror <sysexits.h>
EXIT_OK = 0  # Normal success
EXIT_GENERIC = 1  # Generic failure (fallback)
EXIT_THRESHOLD = 2  # A domain or file rule failed its minimum
EXIT_DATAERR = 65  # Input data was invalid (e.g., malformed XML or history)
EXIT_NOINPUT = 66  # Input file not found (e.g., coverage.xml missing)
EXIT_CONFIG = 78  # Invalid configuration (e.g., bad covpolicy.toml)
