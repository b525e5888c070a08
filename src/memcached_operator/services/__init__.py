"""Service integrations for the Memcached Operator."""
