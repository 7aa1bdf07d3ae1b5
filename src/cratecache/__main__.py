import sys

from cratecache.cli import main

sys.exit(main())
