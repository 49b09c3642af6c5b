# ABOUTME: Readtrack - a CLI reading tracker with full-library backup and restore.
# ABOUTME: Package root; subpackages hold the database, backup engine, and CLI.
