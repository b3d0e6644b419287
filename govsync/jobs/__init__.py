"""Process-level jobs: deploy-time sync and the triggered-run worker."""
