"""
Main entry point for the GenAss package when executed as a module.

This allows running the package with `python -m genass`.
"""

from genass.cli import main

if __name__ == '__main__':
    main()
