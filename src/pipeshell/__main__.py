import sys

from pipeshell.shell import main

sys.exit(main())
