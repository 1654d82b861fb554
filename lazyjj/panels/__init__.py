"""Panel models: stable selection, viewport reducers, list and diff panels."""
