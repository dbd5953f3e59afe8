import sys

from doc_snapshots.cli import main

sys.exit(main())
