import sys

from dicomanon.cli import main

sys.exit(main())
