"""HTTP API for the waitlist service."""
