#!/usr/bin/env python3
"""Generate social-media copy or an image from a context.

This is a thin wrapper around the academia_profiles package, e.g.
``python run_generate.py linkedin --context-file pub.json``.
"""

from academia_profiles.cli import generate_main

if __name__ == "__main__":
    generate_main()
