# =============================================================================
# JustSend Entry Point for `python -m justsend`
# =============================================================================
# This module allows JustSend to be run as a Python module:
#
#   python -m justsend
#
# This is equivalent to running the 'justsend' command after installation.
# =============================================================================

import sys

from justsend.app import main

if __name__ == "__main__":
    sys.exit(main())
