import sys

from pychip8.main import main

sys.exit(main())
