import sys

from ornasync.cli import main

sys.exit(main())
