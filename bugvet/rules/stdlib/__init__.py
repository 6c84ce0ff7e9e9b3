"""
Standard library misuse rules.

Rules in this module:
- STDLIB.BINARY_WRITE_LAYOUT - binary.Write with a value lacking a fixed-width layout
- STDLIB.SLEEP_CONSTANT - time.Sleep with a small bare integer
"""
