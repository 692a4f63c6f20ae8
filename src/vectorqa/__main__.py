import sys

from vectorqa.cli import main

sys.exit(main())
