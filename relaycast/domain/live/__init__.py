"""Live streaming domain: ingest identity, stream lifecycle and republishing."""
