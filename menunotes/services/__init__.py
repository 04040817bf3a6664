"""Services layered on the note store."""
