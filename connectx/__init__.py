"""ConnectX social feed API."""
