# symbols_awakening\__main__.py
import sys

from symbols_awakening.cli import main

sys.exit(main())
