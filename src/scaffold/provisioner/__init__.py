"""Project provisioning from a template repository.

This module creates project directories by:
- Cloning the template repository
- Removing the template's Git history and running git init
- Patching the project name into package.json
- Installing dependencies
"""
