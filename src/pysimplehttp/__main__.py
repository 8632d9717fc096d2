"""Main entry point for running pysimplehttp as a module.

Usage:
    python -m pysimplehttp get <url>
    python -m pysimplehttp --help
"""

from pysimplehttp.cli import main

if __name__ == '__main__':
    main()
