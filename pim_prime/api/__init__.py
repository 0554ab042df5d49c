"""REST clients for the access authority and the identity directory."""
