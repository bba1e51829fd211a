"""Allow running testlink as ``python -m testlink``."""

import sys

from testlink.cli import main

sys.exit(main())
