import sys

from llmjson.cli import main

sys.exit(main())
