"""HTTP API: the Subsonic REST surface under /rest."""
