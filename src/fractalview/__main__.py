"""
Run with: python -m fractalview
"""
import sys

from fractalview.main import main

if __name__ == "__main__":
    sys.exit(main())
