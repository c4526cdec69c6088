"""Domain records, errors and workflows."""
