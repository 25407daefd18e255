# Single source of truth for the package version.
VERSION = "0.3.0"
