"""
Convenience entry point for running studyplanner as a module.

Usage: python -m studyplanner [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
