"""
Literal rules for detecting malformed strings passed to parsers.

These rules extract a constant string argument and run it through the
same grammar the Go standard library would, reporting the parse error.

Rules in this module:
- LITERALS.INVALID_REGEX - regexp.Compile / MustCompile patterns that do not compile
- LITERALS.INVALID_TEMPLATE - text/html template sources that do not parse
- LITERALS.INVALID_TIME_LAYOUT - time.Parse layouts that cannot parse themselves
"""
