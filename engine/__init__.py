"""Team capacity allocation engine."""
