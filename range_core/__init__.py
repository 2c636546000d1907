"""
Range painter core package.

Pure-logic pieces behind the 13x13 hand matrix, kept free of any GUI so the
Flask app, the CLI and the tests share one implementation.
Modules:
- hands.py: the 169 hand classes and their combination counts
- actions.py: simple/weighted action buttons and per-cell styling
- selection.py: drag/click selection state machine
- matrix.py: headless matrix bound to a stored range
- store.py, db.py: folders, ranges, actions and their SQLite persistence
- stats.py: range and training statistics
"""
