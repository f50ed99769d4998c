"""Services — async orchestration of repository calls around the pure core."""
