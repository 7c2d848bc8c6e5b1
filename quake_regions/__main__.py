import sys

from quake_regions.cli import main

sys.exit(main())
