"""
Mica Command-Line Interface
===========================

This package provides the command-line tools for Mica:

- **micc**: Mica compiler (source to LLVM IR)

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["micc"]
