"""Session stores: one JSON file per session, or one SQLite database with full-text indexing."""