"""
Kaleidoscope Command-Line Interface
===================================

- **kparse**: lex and parse Kaleidoscope input, from `-e`, a file, or an
  interactive loop, and display tokens and ASTs

The tool is a Click application with exit codes shared through
`kaleidoscope.cli.errors`.
"""

__all__ = ["kparse"]
