"""Pipeline daemon: config resolution, plugin queue, progress streaming."""
