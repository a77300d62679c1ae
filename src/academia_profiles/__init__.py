"""academia-profiles: researcher profile aggregation and social copy generation."""

__version__ = "0.1.0"

# Fixed request shape for the profile service "linkedTo" endpoints.
# Only the first page is ever requested, so lists are capped at PAGE_SIZE.
PAGE_SIZE = 100
PAGE_START = 0
SORT_ORDER = "dateDesc"

# Personal website labels used by the profile service
LINKEDIN_LABEL = "LinkedIn"
TWITTER_LABEL = "X (Twitter)"
