"""Tag cache container: tag table, string table, resources and record codec."""
