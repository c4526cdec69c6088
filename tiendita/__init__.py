"""MiTienditaMX accounts and catalog API."""
