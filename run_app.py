#!/usr/bin/env python3

import sys
import os


# Add the project root directory to the Python path
# This allows importing the 'deskbridge' package
project_root = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, project_root)

try:
    from deskbridge import main
except ImportError as e:
    print(f"Error importing deskbridge package: {e}", file=sys.stderr)
    print("Please ensure the script is run from the project root directory", file=sys.stderr)
    print("or that the 'deskbridge' package is correctly installed.", file=sys.stderr)
    sys.exit(1)

if __name__ == "__main__":
    sys.exit(main.run(sys.argv))
