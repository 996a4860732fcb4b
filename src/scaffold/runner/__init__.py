"""Package manager subprocess runner.

This module manages the dependency install step:
- Subprocess invocation in the project directory
- Timeout enforcement
- stdout/stderr capture and streaming
- Exit code handling for success/failure determination
"""
