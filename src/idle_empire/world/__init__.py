"""Static game data and the mutable empire snapshot."""
