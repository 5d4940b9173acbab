import sys

from football_league.main import main

sys.exit(main())
