#!/usr/bin/env python3
"""Fetch an ORCID record through the local JSON cache.

This is a thin wrapper around the academia_profiles package, e.g.
``python run_orcid.py <orcid_id>``.
"""

from academia_profiles.cli import orcid_main

if __name__ == "__main__":
    orcid_main()
