"""Allow running as ``python -m keep_a_changelog``."""

import sys

from keep_a_changelog.cli import main

sys.exit(main())
