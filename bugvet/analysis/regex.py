"""
Validation of Go ``regexp`` patterns.

Patterns are parsed with the grammar of Go's ``regexp/syntax`` package in
the Perl mode ``regexp.Compile`` uses, and rejected with the same error
text. Only syntax is checked; no matcher is built.

Two limits are not modelled: invalid UTF-8 cannot occur in a decoded
``str``, and the program-size limit ("expression too large") needs a
compiled program.
"""

from dataclasses import dataclass, field

MAX_REPEAT = 1000
MAX_HEIGHT = 1000
MAX_RUNE = 0x10FFFF

ERR_INVALID_CHAR_RANGE = "invalid character class range"
ERR_INVALID_ESCAPE = "invalid escape sequence"
ERR_INVALID_NAMED_CAPTURE = "invalid named capture"
ERR_INVALID_PERL_OP = "invalid or unsupported Perl syntax"
ERR_INVALID_REPEAT_OP = "invalid nested repetition operator"
ERR_INVALID_REPEAT_SIZE = "invalid repeat count"
ERR_MISSING_BRACKET = "missing closing ]"
ERR_MISSING_PAREN = "missing closing )"
ERR_MISSING_REPEAT_ARGUMENT = "missing argument to repetition operator"
ERR_TRAILING_BACKSLASH = "trailing backslash at end of expression"
ERR_UNEXPECTED_PAREN = "unexpected )"
ERR_NESTING_DEPTH = "expression nests too deeply"

_OCTAL_DIGITS = "01234567"
_HEX_DIGITS = "0123456789abcdefABCDEF"
_C_ESCAPES = {"a": 7, "f": 12, "n": 10, "r": 13, "t": 9, "v": 11}

PERL_CLASSES = frozenset({"\\d", "\\D", "\\s", "\\S", "\\w", "\\W"})

_POSIX_NAMES = (
    "alnum",
    "alpha",
    "ascii",
    "blank",
    "cntrl",
    "digit",
    "graph",
    "lower",
    "print",
    "punct",
    "space",
    "upper",
    "word",
    "xdigit",
)
POSIX_CLASSES = frozenset(
    [f"[:{name}:]" for name in _POSIX_NAMES] + [f"[:^{name}:]" for name in _POSIX_NAMES]
)

UNICODE_CATEGORIES = frozenset(
    "C Cc Cf Co Cs L Ll Lm Lo Lt Lu M Mc Me Mn N Nd Nl No "
    "P Pc Pd Pe Pf Pi Po Ps S Sc Sk Sm So Z Zl Zp Zs".split()
)

# Script names known to Go's unicode package (Unicode 15.0).
UNICODE_SCRIPTS = frozenset(
    """
    Adlam Ahom Anatolian_Hieroglyphs Arabic Armenian Avestan Balinese Bamum
    Bassa_Vah Batak Bengali Bhaiksuki Bopomofo Brahmi Braille Buginese Buhid
    Canadian_Aboriginal Carian Caucasian_Albanian Chakma Cham Cherokee
    Chorasmian Common Coptic Cuneiform Cypriot Cypro_Minoan Cyrillic Deseret
    Devanagari Dives_Akuru Dogra Duployan Egyptian_Hieroglyphs Elbasan Elymaic
    Ethiopic Georgian Glagolitic Gothic Grantha Greek Gujarati Gunjala_Gondi
    Gurmukhi Han Hangul Hanifi_Rohingya Hanunoo Hatran Hebrew Hiragana
    Imperial_Aramaic Inherited Inscriptional_Pahlavi Inscriptional_Parthian
    Javanese Kaithi Kannada Katakana Kawi Kayah_Li Kharoshthi
    Khitan_Small_Script Khmer Khojki Khudawadi Lao Latin Lepcha Limbu Linear_A
    Linear_B Lisu Lycian Lydian Mahajani Makasar Malayalam Mandaic Manichaean
    Marchen Masaram_Gondi Medefaidrin Meetei_Mayek Mende_Kikakui
    Meroitic_Cursive Meroitic_Hieroglyphs Miao Modi Mongolian Mro Multani
    Myanmar Nabataean Nag_Mundari Nandinagari New_Tai_Lue Newa Nko Nushu
    Nyiakeng_Puachue_Hmong Ogham Ol_Chiki Old_Hungarian Old_Italic
    Old_North_Arabian Old_Permic Old_Persian Old_Sogdian Old_South_Arabian
    Old_Turkic Old_Uyghur Oriya Osage Osmanya Pahawh_Hmong Palmyrene
    Pau_Cin_Hau Phags_Pa Phoenician Psalter_Pahlavi Rejang Runic Samaritan
    Saurashtra Sharada Shavian Siddham SignWriting Sinhala Sogdian
    Sora_Sompeng Soyombo Sundanese Syloti_Nagri Syriac Tagalog Tagbanwa Tai_Le
    Tai_Tham Tai_Viet Takri Tamil Tangsa Tangut Telugu Thaana Thai Tibetan
    Tifinagh Tirhuta Toto Ugaritic Vai Vithkuqi Wancho Warang_Citi Yezidi Yi
    Zanabazar_Square
    """.split()
)

# Stack operators. The first two are markers that never get repeated.
LEFT_PAREN = "("
VERTICAL_BAR = "|"
LEAF = "leaf"
EMPTY = "empty"
CONCAT = "concat"
ALTERNATE = "alternate"
CAPTURE = "capture"
REPEAT = "repeat"


class RegexSyntaxError(ValueError):
    """Mirrors Go's ``*syntax.Error``: an error code and the offending text."""

    def __init__(self, code: str, expr: str):
        self.code = code
        self.expr = expr
        super().__init__(f"{code}: `{expr}`")


@dataclass
class _Node:
    op: str
    subs: list["_Node"] = field(default_factory=list)
    min: int = 0
    max: int = 0
    height: int = 1
    capture: bool = False


def _is_pseudo(node: _Node) -> bool:
    return node.op in (LEFT_PAREN, VERTICAL_BAR)


def _unhex(c: str) -> int:
    if c == "" or c not in _HEX_DIGITS:
        return -1
    return int(c, 16)


def _is_valid_capture_name(name: str) -> bool:
    return name != "" and all(c == "_" or (c.isascii() and c.isalnum()) for c in name)


def _parse_int(s: str) -> tuple[int, str] | None:
    """Leading decimal number of ``s``; -1 when it is absurdly large."""
    if s == "" or not "0" <= s[0] <= "9":
        return None
    if len(s) >= 2 and s[0] == "0" and "0" <= s[1] <= "9":
        return None
    end = 0
    while end < len(s) and "0" <= s[end] <= "9":
        end += 1
    digits = s[:end]
    n = -1 if len(digits) > 9 else int(digits)
    return n, s[end:]


def _parse_repeat(s: str) -> tuple[int, int, str] | None:
    """Parse ``{n}``, ``{n,}`` or ``{n,m}`` at the start of ``s``.

    Returns ``(min, max, rest)`` with max -1 for an open range, or None
    when the brace does not start a repetition.
    """
    parsed = _parse_int(s[1:])
    if parsed is None:
        return None
    lo, s = parsed
    if s == "":
        return None
    if s[0] != ",":
        hi = lo
    else:
        s = s[1:]
        if s == "":
            return None
        if s[0] == "}":
            hi = -1
        else:
            parsed = _parse_int(s)
            if parsed is None:
                return None
            hi, s = parsed
            if hi < 0:
                lo = -1
    if s == "" or s[0] != "}":
        return None
    return lo, hi, s[1:]


def _parse_escape(s: str) -> tuple[int, str]:
    """Parse a single-character escape; returns the code point and the rest."""
    t = s[1:]
    if t == "":
        raise RegexSyntaxError(ERR_TRAILING_BACKSLASH, "")
    c, t = t[0], t[1:]

    if c in _OCTAL_DIGITS:
        # A lone non-zero digit would be a backreference.
        if c == "0" or t[:1] and t[0] in _OCTAL_DIGITS:
            r = int(c)
            for _ in range(2):
                if t == "" or t[0] not in _OCTAL_DIGITS:
                    break
                r = r * 8 + int(t[0])
                t = t[1:]
            return r, t
    elif c == "x":
        if t:
            c, t = t[0], t[1:]
            if c == "{":
                nhex, r = 0, 0
                while t:
                    c, t = t[0], t[1:]
                    if c == "}":
                        if nhex:
                            return r, t
                        break
                    v = _unhex(c)
                    if v < 0:
                        break
                    r = r * 16 + v
                    if r > MAX_RUNE:
                        break
                    nhex += 1
            else:
                x = _unhex(c)
                c, t = t[:1], t[1:]
                y = _unhex(c)
                if x >= 0 and y >= 0:
                    return x * 16 + y, t
    elif c in _C_ESCAPES:
        return _C_ESCAPES[c], t
    elif c.isascii() and not c.isalnum():
        # Escaped punctuation, including \_, is always itself.
        return ord(c), t

    raise RegexSyntaxError(ERR_INVALID_ESCAPE, s[: len(s) - len(t)])


def _parse_unicode_class(s: str) -> str | None:
    """Skip ``\\pN``, ``\\p{Name}`` or ``\\P{^Name}``; None if ``s`` has none."""
    if len(s) < 2 or s[0] != "\\" or s[1] not in "pP":
        return None
    if s[2:3] != "{":
        seq, rest = s[:3], s[3:]
        name = seq[2:]
    else:
        end = s.find("}")
        if end < 0:
            raise RegexSyntaxError(ERR_INVALID_CHAR_RANGE, s)
        seq, rest = s[: end + 1], s[end + 1 :]
        name = s[3:end]

    if name.startswith("^"):
        name = name[1:]
    if name != "Any" and name not in UNICODE_CATEGORIES and name not in UNICODE_SCRIPTS:
        raise RegexSyntaxError(ERR_INVALID_CHAR_RANGE, seq)
    return rest


def _parse_named_class(s: str) -> str | None:
    """Skip a POSIX ``[:name:]`` class; None if ``s`` has none."""
    i = s.find(":]", 2)
    if i < 0:
        return None
    name = s[: i + 2]
    if name not in POSIX_CLASSES:
        raise RegexSyntaxError(ERR_INVALID_CHAR_RANGE, name)
    return s[i + 2 :]


def _parse_class_char(s: str, whole_class: str) -> tuple[int, str]:
    if s == "":
        raise RegexSyntaxError(ERR_MISSING_BRACKET, whole_class)
    if s[0] == "\\":
        return _parse_escape(s)
    return ord(s[0]), s[1:]


def _repeat_is_valid(node: _Node, n: int) -> bool:
    """Check that nested counted repetitions stay within ``n`` copies."""
    pending = [(node, n)]
    while pending:
        node, n = pending.pop()
        if node.op == REPEAT:
            m = node.max
            if m == 0:
                continue
            if m < 0:
                m = node.min
            if m > n:
                return False
            if m > 0:
                n //= m
        pending.extend((sub, n) for sub in node.subs)
    return True


class _Parser:
    """Operator-stack parser over the remaining pattern text."""

    def __init__(self, pattern: str):
        self.whole = pattern
        self.stack: list[_Node] = []

    def parse(self) -> None:
        t = self.whole
        last_repeat = ""
        while t:
            repeat = ""
            c = t[0]
            if c == "(":
                if t.startswith("(?"):
                    t = self.parse_perl_flags(t)
                else:
                    self.stack.append(_Node(LEFT_PAREN, capture=True))
                    t = t[1:]
            elif c == "|":
                self.parse_vertical_bar()
                t = t[1:]
            elif c == ")":
                self.parse_right_paren()
                t = t[1:]
            elif c == "[":
                t = self.parse_class(t)
            elif c in "*+?":
                repeat = t
                t = self.repeat(c, 0, 0, t, t[1:], last_repeat)
            elif c == "{":
                t, repeat = self.parse_brace(t, last_repeat)
            elif c == "\\":
                t = self.parse_backslash(t)
            else:
                self.leaf()
                t = t[1:]
            last_repeat = repeat

        self.alternate()
        if len(self.stack) != 1:
            raise RegexSyntaxError(ERR_MISSING_PAREN, self.whole)

    # Stack

    def push(self, node: _Node) -> None:
        if node.height > MAX_HEIGHT:
            raise RegexSyntaxError(ERR_NESTING_DEPTH, self.whole)
        self.stack.append(node)

    def leaf(self) -> None:
        self.push(_Node(LEAF))

    def node(self, op: str, subs: list[_Node], **kwargs) -> _Node:
        height = 1 + max((sub.height for sub in subs), default=0)
        return _Node(op, subs, height=height, **kwargs)

    def collapse(self, subs: list[_Node], op: str) -> _Node:
        if len(subs) == 1:
            return subs[0]
        flat: list[_Node] = []
        for sub in subs:
            if sub.op == op:
                flat.extend(sub.subs)
            else:
                flat.append(sub)
        return self.node(op, flat)

    def concat(self) -> None:
        """Replace everything above the last marker with one concatenation."""
        i = len(self.stack)
        while i > 0 and not _is_pseudo(self.stack[i - 1]):
            i -= 1
        subs = self.stack[i:]
        del self.stack[i:]
        self.push(self.collapse(subs, CONCAT) if subs else _Node(EMPTY))

    def alternate(self) -> None:
        """Close the current alternation, leaving one node above the marker."""
        self.concat()
        last = self.stack.pop()
        if self.stack and self.stack[-1].op == VERTICAL_BAR:
            bar = self.stack.pop()
            self.push(self.collapse(bar.subs + [last], ALTERNATE))
        else:
            self.push(last)

    # Operators

    def parse_vertical_bar(self) -> None:
        self.concat()
        branch = self.stack.pop()
        if self.stack and self.stack[-1].op == VERTICAL_BAR:
            self.stack[-1].subs.append(branch)
        else:
            self.stack.append(_Node(VERTICAL_BAR, [branch]))

    def parse_right_paren(self) -> None:
        self.alternate()
        if len(self.stack) < 2:
            raise RegexSyntaxError(ERR_UNEXPECTED_PAREN, self.whole)
        body = self.stack.pop()
        paren = self.stack.pop()
        if paren.op != LEFT_PAREN:
            raise RegexSyntaxError(ERR_UNEXPECTED_PAREN, self.whole)
        self.push(self.node(CAPTURE, [body]) if paren.capture else body)

    def parse_perl_flags(self, s: str) -> str:
        """Parse a ``(?`` group: a named capture, flags or a plain group."""
        starts_with_p = len(s) > 4 and s[2] == "P" and s[3] == "<"
        starts_with_name = len(s) > 3 and s[2] == "<"
        if starts_with_p or starts_with_name:
            end = s.find(">")
            if end < 0:
                raise RegexSyntaxError(ERR_INVALID_NAMED_CAPTURE, s)
            capture = s[: end + 1]
            name = s[(4 if starts_with_p else 3) : end]
            if not _is_valid_capture_name(name):
                raise RegexSyntaxError(ERR_INVALID_NAMED_CAPTURE, capture)
            self.stack.append(_Node(LEFT_PAREN, capture=True))
            return s[end + 1 :]

        t = s[2:]
        negated = False
        saw_flag = False
        while t:
            c, t = t[0], t[1:]
            if c in "imsU":
                saw_flag = True
            elif c == "-":
                if negated:
                    break
                negated = True
                saw_flag = False
            elif c in ":)":
                if negated and not saw_flag:
                    break
                if c == ":":
                    self.stack.append(_Node(LEFT_PAREN))
                return t
            else:
                break
        raise RegexSyntaxError(ERR_INVALID_PERL_OP, s[: len(s) - len(t)])

    def parse_brace(self, t: str, last_repeat: str) -> tuple[str, str]:
        parsed = _parse_repeat(t)
        if parsed is None:
            # Not a counted repetition: the brace is a literal.
            self.leaf()
            return t[1:], ""
        lo, hi, after = parsed
        if lo < 0 or lo > MAX_REPEAT or hi > MAX_REPEAT or (hi >= 0 and lo > hi):
            raise RegexSyntaxError(ERR_INVALID_REPEAT_SIZE, t[: len(t) - len(after)])
        return self.repeat(REPEAT, lo, hi, t, after, last_repeat), t

    def repeat(
        self, op: str, lo: int, hi: int, before: str, after: str, last_repeat: str
    ) -> str:
        """Apply a repetition operator to the top of the stack.

        ``before`` starts at the operator and ``after`` follows it;
        ``last_repeat`` is the previous operator if it immediately precedes.
        """
        if after.startswith("?"):
            after = after[1:]
        if last_repeat:
            # a** and a++ are errors in Perl mode, not doubled operators.
            raise RegexSyntaxError(
                ERR_INVALID_REPEAT_OP, last_repeat[: len(last_repeat) - len(after)]
            )
        if not self.stack or _is_pseudo(self.stack[-1]):
            raise RegexSyntaxError(
                ERR_MISSING_REPEAT_ARGUMENT, before[: len(before) - len(after)]
            )
        node = self.node(op, [self.stack.pop()], min=lo, max=hi)
        self.push(node)
        if op == REPEAT and (lo >= 2 or hi >= 2) and not _repeat_is_valid(node, MAX_REPEAT):
            raise RegexSyntaxError(ERR_INVALID_REPEAT_SIZE, before[: len(before) - len(after)])
        return after

    def parse_backslash(self, t: str) -> str:
        if len(t) >= 2:
            c = t[1]
            if c in "AbBz":
                self.leaf()
                return t[2:]
            if c == "C":
                raise RegexSyntaxError(ERR_INVALID_ESCAPE, t[:2])
            if c == "Q":
                literal, _, rest = t[2:].partition("\\E")
                for _ in literal:
                    self.leaf()
                return rest

        rest = _parse_unicode_class(t)
        if rest is None and t[:2] in PERL_CLASSES:
            rest = t[2:]
        if rest is None:
            _, rest = _parse_escape(t)
        self.leaf()
        return rest

    def parse_class(self, s: str) -> str:
        """Parse a bracketed class starting at ``s``; returns the rest."""
        t = s[1:]
        if t.startswith("^"):
            t = t[1:]

        # ] is a literal as the first character of a class.
        first = True
        while t == "" or t[0] != "]" or first:
            first = False

            if len(t) > 2 and t[0] == "[" and t[1] == ":":
                rest = _parse_named_class(t)
                if rest is not None:
                    t = rest
                    continue

            rest = _parse_unicode_class(t)
            if rest is not None:
                t = rest
                continue

            if t[:2] in PERL_CLASSES:
                t = t[2:]
                continue

            # Single character or range; [a-] means a or -.
            rng = t
            lo, t = _parse_class_char(t, s)
            if len(t) >= 2 and t[0] == "-" and t[1] != "]":
                hi, t = _parse_class_char(t[1:], s)
                if hi < lo:
                    raise RegexSyntaxError(ERR_INVALID_CHAR_RANGE, rng[: len(rng) - len(t)])

        self.leaf()
        return t[1:]


def parse_regex(pattern: str) -> None:
    """Parse ``pattern`` as ``regexp.Compile`` would.

    Raises:
        RegexSyntaxError: With Go's error code and offending text.
    """
    _Parser(pattern).parse()


def check_regex(pattern: str) -> str | None:
    """Return the error ``regexp.Compile`` reports for ``pattern``, or None."""
    try:
        parse_regex(pattern)
    except RegexSyntaxError as e:
        return str(e)
    return None
