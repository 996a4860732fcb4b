"""Project scaffolding from a template repository.

This package implements the ``nextjs-base-cli`` provisioning pipeline:
- Clone the template repository into a new project directory
- Strip the template's Git history and initialize a fresh repository
- Patch the project name into package.json
- Install dependencies with the configured package manager
"""

__version__ = "1.0.0"
