#!/usr/bin/env python3
"""Build the blog into public/. Same as `python -m blogbuild.main`."""

import pathlib
import sys

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent))

from blogbuild.main import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
