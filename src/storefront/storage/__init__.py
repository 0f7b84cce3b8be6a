"""Object storage adapters: hosted image storage behind a port."""
