# =============================================================================
# console_core/data/__init__.py
# Remote client, entity schemas and remote call outcomes
# =============================================================================
