"""Core data model: cells, markers, grid storage and neighbourhoods."""
