import sys

from vatsim_online.cli import main

sys.exit(main())
