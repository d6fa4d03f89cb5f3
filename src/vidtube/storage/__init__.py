"""Media storage: S3-compatible object store and upload spooling."""
