"""
Entry point for running the taskconsole demo as a module: `python -m taskconsole`

Both this file and the `taskconsole-demo` console script call the same
`main()` function in main.py.
"""

from .main import main

if __name__ == "__main__":
    raise SystemExit(main())
