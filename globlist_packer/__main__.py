"""Allow ``python -m globlist_packer``"""

import sys

from .cli import main

if __name__ == '__main__':
    sys.exit(main())
