"""Allow ``python -m laravel_installer``."""

import sys

from laravel_installer.cli import main

sys.exit(main())
