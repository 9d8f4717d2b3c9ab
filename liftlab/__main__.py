import sys

from liftlab.cli import main

sys.exit(main())
