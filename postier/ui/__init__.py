"""Terminal user interface helpers: tables and prompts."""
