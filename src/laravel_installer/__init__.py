"""Laravel installer: scaffold new Laravel applications from the command line."""

__version__ = "5.16.0"
