"""Identity provider adapters: the hosted authentication service behind a port."""
