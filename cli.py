# cli.py

"""
Run DocScout from a source checkout without installing it.

Example:
    python cli.py scan https://school.example.edu/course/42 --list
"""
from doc_scout.cli import cli

if __name__ == '__main__':
    cli()
