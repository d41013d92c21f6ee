"""``python -m rollcall_client``: start the scanning terminal."""
import sys

from .main import main

sys.exit(main(sys.argv[1:]))
