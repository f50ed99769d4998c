"""API Client — typed async client for the Expense Tracker HTTP API."""
