import sys

from backend.app.server import main

sys.exit(main())
