"""query-log-analyzer — rank and render requests reconstructed from query logs."""

import sys

from query_log.cli import main

if __name__ == "__main__":
    sys.exit(main())
