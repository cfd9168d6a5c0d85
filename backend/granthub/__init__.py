"""GrantHub backend package."""
