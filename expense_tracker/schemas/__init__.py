"""Request Schemas — Pydantic models validating bodies at the API boundary."""
