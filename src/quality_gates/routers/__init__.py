"""Quality Gates routers."""
