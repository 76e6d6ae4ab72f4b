"""``python -m beanup`` entrypoint."""

import sys

from beanup.cli import main

sys.exit(main())
