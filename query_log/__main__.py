import sys

from query_log.cli import main

sys.exit(main())
