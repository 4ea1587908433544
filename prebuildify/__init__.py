"""
Build native node modules for several runtimes and versions and collect them in a prebuilds directory.
"""
