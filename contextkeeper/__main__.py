"""Allow ``python -m contextkeeper`` execution."""

import sys

from contextkeeper.cli.client import main

sys.exit(main())
