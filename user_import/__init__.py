"""CSV -> PostgreSQL user import tool."""
