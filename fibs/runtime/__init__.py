"""Resolution runtime: import walk, merging, phases and persisted state."""
