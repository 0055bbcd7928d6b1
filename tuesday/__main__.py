import sys

from tuesday.cli.main import main

sys.exit(main())
