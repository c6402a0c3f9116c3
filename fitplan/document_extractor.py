"""
Recover a structured plan document from free-form generation output.

The generation service wraps JSON in markdown fences, adds prose around it,
and sometimes stops mid-document. This module only restores syntactic
validity: it never invents plan content beyond neutral null placeholders.
"""

import json
import re


FENCE_OPEN_RE = re.compile(r"^\s*```[\w-]*[ \t]*\n?")
FENCE_CLOSE_RE = re.compile(r"\n?[ \t]*```\s*$")
LITERAL_RE = re.compile(r"^(?:-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?|true|false|null)$")
PARTIAL_UNICODE_ESCAPE_RE = re.compile(r"\\u[0-9a-fA-F]{0,3}$")
DAYS_SECTION_RE = re.compile(r'"days"\s*:\s*\{', re.IGNORECASE)
FIRST_DAY_KEY_RE = re.compile(
    r'"(?:day[\s_-]*[1-7]|monday|tuesday|wednesday|thursday|friday|saturday|sunday)"\s*:',
    re.IGNORECASE,
)
DAY_KEY_RE = re.compile(r"^\s*day[\s_-]*([1-7])\s*$", re.IGNORECASE)

OPENERS = {"{": "}", "[": "]"}
CLOSERS = {"}": "{", "]": "["}

WEEKDAY_KEYS = {
    "monday": "day1",
    "tuesday": "day2",
    "wednesday": "day3",
    "thursday": "day4",
    "friday": "day5",
    "saturday": "day6",
    "sunday": "day7",
}

# Where generated documents have been seen to keep the per-day mapping.
DAY_MAPPING_PATHS = [
    ("days",),
    ("plan", "days"),
    ("weekly_plan", "days"),
    ("weeklyPlan", "days"),
    ("plan",),
    ("weekly_plan",),
    ("weeklyPlan",),
    (),
]


def strip_wrappers(text):
    """Remove markdown fences and stray marker characters around the payload."""
    value = (text or "").replace("\ufeff", "").strip()
    value = FENCE_OPEN_RE.sub("", value, count=1)
    value = FENCE_CLOSE_RE.sub("", value)
    return value.strip().strip("`").strip()


def _reject_constant(name):
    """NaN and Infinity literals carry no usable value."""
    return None


def _loads_mapping(text):
    try:
        value = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def scan_spans(text):
    """
    Top-level brace spans found by string-aware bracket scanning.

    Quoted strings (with escapes honored) are skipped so braces inside string
    literals are not counted.

    Returns:
        list of (start, end) tuples; end is None for a span still open at
        end-of-text
    """
    spans = []
    depth = 0
    start = None
    in_string = False
    escaped = False

    for index, char in enumerate(text):
        if start is None:
            if char == "{":
                start = index
                depth = 1
                in_string = False
                escaped = False
            continue

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in OPENERS:
            depth += 1
        elif char in CLOSERS:
            depth -= 1
            if depth == 0:
                spans.append((start, index + 1))
                start = None

    if start is not None:
        spans.append((start, None))
    return spans


def count_brackets(text):
    """(openers, closers) outside string literals."""
    openers = closers = 0
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in OPENERS:
            openers += 1
        elif char in CLOSERS:
            closers += 1
    return openers, closers


class _StructureCloser:
    """
    Re-emits the first top-level structure of a fragment, repairing it.

    Frame states: "key" (expecting a key), "colon" (key read, no colon yet),
    "value" (expecting a value), "after" (value read, expecting , or closer).
    """

    def __init__(self):
        self.out = []
        self.stack = []
        self.in_string = False
        self.escaped = False
        self.string_role = None
        self.literal_start = None
        self.done = False

    def feed(self, char):
        if self.in_string:
            self.out.append(char)
            if self.escaped:
                self.escaped = False
            elif char == "\\":
                self.escaped = True
            elif char == '"':
                self.in_string = False
                self._complete_string()
            return

        if self.literal_start is not None and (char in ",:}]\"" or char.isspace()):
            self._end_literal()

        if not self.stack:
            if char in OPENERS:
                self._open(char)
            return

        frame = self.stack[-1]
        if char == '"':
            self.in_string = True
            self.string_role = {"key": "key", "value": "value"}.get(frame[1])
            self.out.append(char)
        elif char in OPENERS:
            if frame[1] == "value":
                frame[1] = "after"
            self._open(char)
        elif char in CLOSERS:
            self._close_through(CLOSERS[char])
        elif char == ":":
            if frame[0] == "{" and frame[1] == "colon":
                frame[1] = "value"
            self.out.append(char)
        elif char == ",":
            # A separator is only kept after a complete value; doubled or
            # leading separators are dropped.
            if frame[1] == "after":
                self.out.append(char)
                frame[1] = "key" if frame[0] == "{" else "value"
        elif char.isspace():
            self.out.append(char)
        else:
            if frame[1] == "value":
                self.literal_start = len(self.out)
                frame[1] = "after"
            self.out.append(char)

    def finish(self):
        if self.done:
            return "".join(self.out)

        if self.in_string:
            if self.escaped:
                self.out.pop()
                self.escaped = False
            partial = PARTIAL_UNICODE_ESCAPE_RE.search("".join(self.out[-6:]))
            if partial:
                del self.out[len(self.out) - len(partial.group(0)):]
            self.out.append('"')
            self.in_string = False
            self._complete_string()

        if self.literal_start is not None:
            self._end_literal()

        while self.stack:
            self._close_top()
        return "".join(self.out)

    def _open(self, char):
        self.stack.append([char, "key" if char == "{" else "value"])
        self.out.append(char)

    def _complete_string(self):
        if not self.stack:
            return
        frame = self.stack[-1]
        if self.string_role == "key":
            frame[1] = "colon"
        elif self.string_role == "value":
            frame[1] = "after"
        self.string_role = None

    def _end_literal(self):
        token = "".join(self.out[self.literal_start:]).strip()
        if not LITERAL_RE.match(token):
            # Truncated number or boolean: swap in a neutral placeholder.
            del self.out[self.literal_start:]
            self.out.extend("null")
        self.literal_start = None

    def _strip_trailing_separator(self):
        while self.out and self.out[-1].isspace():
            self.out.pop()
        if self.out and self.out[-1] == ",":
            self.out.pop()
            while self.out and self.out[-1].isspace():
                self.out.pop()

    def _settle(self, frame):
        if frame[0] == "{" and frame[1] == "colon":
            self._strip_trailing_separator()
            self.out.extend(": null")
            frame[1] = "after"
        elif frame[0] == "{" and frame[1] == "value":
            self._strip_trailing_separator()
            self.out.extend(" null")
            frame[1] = "after"

    def _close_top(self):
        frame = self.stack.pop()
        self._settle(frame)
        self._strip_trailing_separator()
        self.out.append(OPENERS[frame[0]])
        if not self.stack:
            self.done = True

    def _close_through(self, opener):
        if not any(frame[0] == opener for frame in self.stack):
            # Surplus closer with no matching opener.
            return
        while self.stack:
            matched = self.stack[-1][0] == opener
            self._close_top()
            if matched:
                break


def close_structure(fragment):
    """
    Close a truncated or unbalanced fragment into parseable text.

    An open string is closed, a dangling colon or key gets a null
    placeholder, dangling separators are removed, and open structures are
    closed last-opened-first. Text after the first top-level structure
    closes is ignored.
    """
    closer = _StructureCloser()
    for char in fragment:
        if closer.done:
            break
        closer.feed(char)
    return closer.finish()


def _trim_surplus_closers(text):
    start = text.find("{")
    end = max(text.rfind("}"), text.rfind("]"))
    if start < 0 or end <= start:
        return None
    fragment = text[start:end + 1]
    openers, closers = count_brackets(fragment)
    while closers > openers and fragment and fragment[-1] in CLOSERS:
        fragment = fragment[:-1].rstrip()
        closers -= 1
        document = _loads_mapping(fragment)
        if document is not None:
            return document
    return None


def _extract_day_section(text):
    """Recover just the per-day mapping and wrap it in a minimal envelope."""
    match = DAYS_SECTION_RE.search(text)
    if match:
        section = close_structure(text[match.end() - 1:])
        days = _loads_mapping(section)
        if days:
            return {"days": days}

    match = FIRST_DAY_KEY_RE.search(text)
    if match:
        section = close_structure("{" + text[match.start():])
        days = _loads_mapping(section)
        if days:
            return {"days": days}
    return None


def _span_length(span, text_length):
    start, end = span
    return (end if end is not None else text_length) - start


def extract_plan_document(raw_text):
    """
    Recover a structured document from raw generation output.

    Returns:
        dict with "document" (dict or None), "method" (direct, closed,
        trimmed, envelope or failed) and "notes" (list of str)
    """
    notes = []
    text = strip_wrappers(raw_text)
    if not text:
        notes.append("empty response")
        return {"document": None, "method": "failed", "notes": notes}

    spans = scan_spans(text)
    spans.sort(key=lambda span: _span_length(span, len(text)), reverse=True)

    for start, end in spans:
        if end is None:
            continue
        document = _loads_mapping(text[start:end])
        if document is not None:
            return {"document": document, "method": "direct", "notes": notes}

    for start, end in spans:
        fragment = text[start:end] if end is not None else text[start:]
        document = _loads_mapping(close_structure(fragment))
        if document is not None:
            if end is None:
                notes.append("closed structures left open at end of text")
            else:
                notes.append("removed dangling separators or placeholders")
            return {"document": document, "method": "closed", "notes": notes}

    document = _trim_surplus_closers(text)
    if document is not None:
        notes.append("trimmed surplus closing brackets")
        return {"document": document, "method": "trimmed", "notes": notes}

    document = _extract_day_section(text)
    if document is not None:
        notes.append("recovered per-day section only")
        return {"document": document, "method": "envelope", "notes": notes}

    notes.append("no recoverable structure")
    return {"document": None, "method": "failed", "notes": notes}


def normalize_day_key(key):
    """'day1', 'Day 1', 'day_1' or a weekday name -> ordinal key, else None."""
    text = str(key or "").strip().lower()
    if text in WEEKDAY_KEYS:
        return WEEKDAY_KEYS[text]
    match = DAY_KEY_RE.match(text)
    if match:
        return f"day{match.group(1)}"
    return None


def _looks_like_day_mapping(value):
    return isinstance(value, dict) and any(normalize_day_key(key) for key in value)


def locate_day_mapping(document):
    """Find the per-day mapping inside a recovered document, or None."""
    if not isinstance(document, dict):
        return None
    for path in DAY_MAPPING_PATHS:
        node = document
        for step in path:
            node = node.get(step) if isinstance(node, dict) else None
        if _looks_like_day_mapping(node):
            return node
    days = document.get("days")
    return days if isinstance(days, dict) else None


def normalize_plan_document(document):
    """
    Return {"days": {...}} with ordinal day keys.

    Weekday-keyed documents from older generations are migrated
    (monday -> day1 ... sunday -> day7). Keys that are not day labels are
    kept as-is so the validator can report them.
    """
    if not isinstance(document, dict):
        return document
    mapping = locate_day_mapping(document)
    if mapping is None:
        return dict(document)

    days = {}
    for key, value in mapping.items():
        ordinal = normalize_day_key(key) or str(key)
        if ordinal not in days:
            days[ordinal] = value
    return {"days": days}
