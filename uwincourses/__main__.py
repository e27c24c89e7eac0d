"""
Package entry point.

Allows running the application via:

    python -m uwincourses

This simply forwards execution to uwincourses.cli.main().
"""

from uwincourses.cli import main

if __name__ == "__main__":
    main()
