import sys

from sweepgram.cli import main

sys.exit(main())
