import sys

from doclib_export.cli import main

sys.exit(main())
