import sys

from storefront_e2e.cli import main

sys.exit(main())
