"""Domain events emitted while fetching (requests, responses, retries)."""
