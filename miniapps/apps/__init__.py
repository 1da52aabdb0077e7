"""
Command-line mini-apps. Each module exposes a ``main()`` console entry point.
"""
