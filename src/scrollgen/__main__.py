"""Allow `python -m scrollgen`."""

import sys

from scrollgen.main import main

sys.exit(main())
