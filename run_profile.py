#!/usr/bin/env python3
"""Fetch and merge a researcher profile document as JSON.

This is a thin wrapper around the academia_profiles package, e.g.
``python run_profile.py <user_id>``.
"""

from academia_profiles.cli import main

if __name__ == "__main__":
    main()
