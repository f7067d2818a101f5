import sys

from raidsync.cli import main

sys.exit(main())
