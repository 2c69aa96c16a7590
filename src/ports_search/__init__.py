"""Client-side query engine for a pre-fetched catalog of ports."""
