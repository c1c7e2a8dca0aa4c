"""
Test support utilities for journal-spine tests.

- ``fakes``           DB-API doubles with per-statement fault injection
- ``sqlite_helpers``  direct reads of a SQLite file for assertions
"""
