import sys

from airfine.cli import main

sys.exit(main())
