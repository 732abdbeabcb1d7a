"""Store services: codecs, call normalization, async delivery and the SQLite store."""
