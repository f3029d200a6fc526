import sys

from map_veto.cli import main

sys.exit(main())
