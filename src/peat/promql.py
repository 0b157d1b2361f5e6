"""Best-effort PromQL pretty printer.

Parses a query into a small AST and prints it back the way Prometheus'
own ``Pretty`` does: any node whose one-line form fits in 100 columns stays
on one line, otherwise binary operators, aggregations, function calls and
parentheses are split over indented lines.

Literals (numbers, strings, durations) are printed exactly as written.
A query that fails to parse is returned unchanged; format_query never
raises.

// [LAW:dataflow-not-control-flow] format_query is pure: text in, text out.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)

MAX_LINE = 100
INDENT = "  "
# Deepest expression nesting the parser accepts.
MAX_DEPTH = 100


# ─── Tokens ──────────────────────────────────────────────────────────────────


class Tok(Enum):
    NUMBER = "number"
    DURATION = "duration"
    STRING = "string"
    IDENT = "ident"
    OP = "op"
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    COMMA = ","
    COLON = ":"
    AT = "@"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    kind: Tok
    text: str
    pos: int


class PromQLSyntaxError(ValueError):
    def __init__(self, message: str, pos: int):
        self.pos = pos
        super().__init__(f"{message} at position {pos}")


_DURATION_RE = re.compile(r"(?:\d+(?:ms|[smhdwy]))+(?!\w)")
_NUMBER_RE = re.compile(
    r"0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
)
_IDENT_RE = re.compile(r"[A-Za-z_:][A-Za-z0-9_:]*")
_STRING_RE = re.compile(r'"(?:[^"\\\n]|\\.)*"|\'(?:[^\'\\\n]|\\.)*\'|`[^`]*`')
# Longest operators first.
_OP_RE = re.compile(r"==|!=|<=|>=|=~|!~|[-+*/%^<>=]")

_PUNCT = {
    "(": Tok.LPAREN,
    ")": Tok.RPAREN,
    "{": Tok.LBRACE,
    "}": Tok.RBRACE,
    "[": Tok.LBRACKET,
    "]": Tok.RBRACKET,
    ",": Tok.COMMA,
    ":": Tok.COLON,
    "@": Tok.AT,
}


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    bracket_depth = 0
    while pos < len(text):
        ch = text[pos]
        if ch.isspace():
            pos += 1
            continue
        if ch == "#":
            # Comment runs to end of line.
            end = text.find("\n", pos)
            pos = len(text) if end == -1 else end
            continue
        # Outside brackets a colon starts a recording-rule style name.
        if ch in _PUNCT and (ch != ":" or bracket_depth > 0):
            if ch == "[":
                bracket_depth += 1
            elif ch == "]":
                bracket_depth = max(0, bracket_depth - 1)
            tokens.append(Token(_PUNCT[ch], ch, pos))
            pos += 1
            continue
        m = _STRING_RE.match(text, pos)
        if m:
            tokens.append(Token(Tok.STRING, m.group(), pos))
            pos = m.end()
            continue
        if ch.isdigit():
            m = _DURATION_RE.match(text, pos)
            if m:
                tokens.append(Token(Tok.DURATION, m.group(), pos))
                pos = m.end()
                continue
        if ch.isdigit() or (ch == "." and pos + 1 < len(text) and text[pos + 1].isdigit()):
            m = _NUMBER_RE.match(text, pos)
            tokens.append(Token(Tok.NUMBER, m.group(), pos))
            pos = m.end()
            continue
        m = _IDENT_RE.match(text, pos)
        if m:
            tokens.append(Token(Tok.IDENT, m.group(), pos))
            pos = m.end()
            continue
        m = _OP_RE.match(text, pos)
        if m:
            tokens.append(Token(Tok.OP, m.group(), pos))
            pos = m.end()
            continue
        raise PromQLSyntaxError(f"unexpected character {ch!r}", pos)
    tokens.append(Token(Tok.EOF, "", len(text)))
    return tokens


# ─── AST ─────────────────────────────────────────────────────────────────────


def _indent(level: int) -> str:
    return INDENT * level


class Node:
    def render(self) -> str:
        raise NotImplementedError

    def pretty(self, level: int) -> str:
        return _indent(level) + self.render()


@dataclass
class Literal(Node):
    text: str

    def render(self) -> str:
        return self.text


@dataclass
class Matcher:
    label: str
    op: str
    value: str

    def render(self) -> str:
        return f"{self.label}{self.op}{self.value}"


def _time_suffix(offset: str | None, at: str | None) -> str:
    out = ""
    if at is not None:
        out += f" @ {at}"
    if offset is not None:
        out += f" offset {offset}"
    return out


@dataclass
class VectorSelector(Node):
    name: str
    matchers: list[Matcher] = field(default_factory=list)
    range: str | None = None
    offset: str | None = None
    at: str | None = None

    def render(self) -> str:
        out = self.name
        if self.matchers or not self.name:
            out += "{" + ", ".join(m.render() for m in self.matchers) + "}"
        if self.range is not None:
            out += f"[{self.range}]"
        return out + _time_suffix(self.offset, self.at)


@dataclass
class Call(Node):
    func: str
    args: list[Node]

    def render(self) -> str:
        return f"{self.func}({', '.join(a.render() for a in self.args)})"

    def pretty(self, level: int) -> str:
        one_line = self.render()
        if len(one_line) <= MAX_LINE or not self.args:
            return _indent(level) + one_line
        args = ",\n".join(a.pretty(level + 1) for a in self.args)
        return f"{_indent(level)}{self.func}(\n{args}\n{_indent(level)})"


PARAM_AGGREGATORS = frozenset({"topk", "bottomk", "count_values", "quantile", "limitk", "limit_ratio"})
AGGREGATORS = frozenset(
    {"sum", "avg", "count", "min", "max", "group", "stddev", "stdvar"} | PARAM_AGGREGATORS
)


@dataclass
class Aggregate(Node):
    op: str
    expr: Node
    param: Node | None = None
    grouping: list[str] = field(default_factory=list)
    without: bool = False

    def _op_str(self) -> str:
        if self.without:
            return f"{self.op} without ({', '.join(self.grouping)}) "
        if self.grouping:
            return f"{self.op} by ({', '.join(self.grouping)}) "
        return self.op

    def render(self) -> str:
        param = f"{self.param.render()}, " if self.param is not None else ""
        return f"{self._op_str()}({param}{self.expr.render()})"

    def pretty(self, level: int) -> str:
        one_line = self.render()
        if len(one_line) <= MAX_LINE:
            return _indent(level) + one_line
        out = _indent(level) + self._op_str() + "(\n"
        if self.param is not None:
            out += self.param.pretty(level + 1) + ",\n"
        return out + self.expr.pretty(level + 1) + "\n" + _indent(level) + ")"


@dataclass
class Matching:
    on: bool
    labels: list[str]
    group_side: str | None = None  # "left" | "right"
    include: list[str] = field(default_factory=list)

    def render(self) -> str:
        if not self.labels and not self.on and self.group_side is None:
            return ""
        out = f" {'on' if self.on else 'ignoring'} ({', '.join(self.labels)})"
        if self.group_side is not None:
            out += f" group_{self.group_side} ({', '.join(self.include)})"
        return out


@dataclass
class Binary(Node):
    op: str
    lhs: Node
    rhs: Node
    return_bool: bool = False
    matching: Matching | None = None

    def _op_str(self) -> str:
        out = self.op
        if self.return_bool:
            out += " bool"
        if self.matching is not None:
            out += self.matching.render()
        return out

    def render(self) -> str:
        return f"{self.lhs.render()} {self._op_str()} {self.rhs.render()}"

    def pretty(self, level: int) -> str:
        one_line = self.render()
        if len(one_line) <= MAX_LINE:
            return _indent(level) + one_line
        return (
            f"{self.lhs.pretty(level + 1)}\n"
            f"{_indent(level)}{self._op_str()}\n"
            f"{self.rhs.pretty(level + 1)}"
        )


@dataclass
class Unary(Node):
    op: str
    expr: Node

    def render(self) -> str:
        return f"{self.op}{self.expr.render()}"

    def pretty(self, level: int) -> str:
        one_line = self.render()
        if len(one_line) <= MAX_LINE:
            return _indent(level) + one_line
        return _indent(level) + self.op + self.expr.pretty(level).strip()


@dataclass
class Paren(Node):
    expr: Node

    def render(self) -> str:
        return f"({self.expr.render()})"

    def pretty(self, level: int) -> str:
        one_line = self.render()
        if len(one_line) <= MAX_LINE:
            return _indent(level) + one_line
        return f"{_indent(level)}(\n{self.expr.pretty(level + 1)}\n{_indent(level)})"


@dataclass
class Subquery(Node):
    expr: Node
    range: str
    step: str | None = None
    offset: str | None = None
    at: str | None = None

    def _suffix(self) -> str:
        return f"[{self.range}:{self.step or ''}]" + _time_suffix(self.offset, self.at)

    def render(self) -> str:
        return self.expr.render() + self._suffix()

    def pretty(self, level: int) -> str:
        one_line = self.render()
        if len(one_line) <= MAX_LINE:
            return _indent(level) + one_line
        return self.expr.pretty(level) + self._suffix()


# ─── Parser ──────────────────────────────────────────────────────────────────

# (precedence, right associative)
_BINARY_OPS: dict[str, tuple[int, bool]] = {
    "or": (1, False),
    "and": (2, False),
    "unless": (2, False),
    "==": (3, False),
    "!=": (3, False),
    "<=": (3, False),
    "<": (3, False),
    ">=": (3, False),
    ">": (3, False),
    "+": (4, False),
    "-": (4, False),
    "*": (5, False),
    "/": (5, False),
    "%": (5, False),
    "atan2": (5, False),
    "^": (6, True),
}
_COMPARISONS = frozenset({"==", "!=", "<=", "<", ">=", ">"})
_MATCH_OPS = frozenset({"=", "!=", "=~", "!~"})
_UNARY_PRECEDENCE = 6


class _Parser:
    def __init__(self, tokens: list[Token]):
        self._tokens = tokens
        self._i = 0
        self._depth = 0

    # token helpers

    @property
    def tok(self) -> Token:
        return self._tokens[self._i]

    def _peek(self, offset: int = 1) -> Token:
        return self._tokens[min(self._i + offset, len(self._tokens) - 1)]

    def _advance(self) -> Token:
        tok = self._tokens[self._i]
        if tok.kind is not Tok.EOF:
            self._i += 1
        return tok

    def _expect(self, kind: Tok, text: str | None = None) -> Token:
        tok = self.tok
        if tok.kind is not kind or (text is not None and tok.text != text):
            wanted = text or kind.value
            raise PromQLSyntaxError(f"expected {wanted!r}, found {tok.text or 'end of input'!r}", tok.pos)
        return self._advance()

    def _is_ident(self, *words: str) -> bool:
        return self.tok.kind is Tok.IDENT and self.tok.text in words

    # grammar

    def parse(self) -> Node:
        node = self._expr(0)
        if self.tok.kind is not Tok.EOF:
            raise PromQLSyntaxError(f"unexpected {self.tok.text!r}", self.tok.pos)
        return node

    def _binary_op(self) -> str | None:
        tok = self.tok
        if tok.kind is Tok.OP and tok.text in _BINARY_OPS:
            return tok.text
        if tok.kind is Tok.IDENT and tok.text in ("and", "or", "unless", "atan2"):
            return tok.text
        return None

    def _expr(self, min_prec: int) -> Node:
        if self._depth >= MAX_DEPTH:
            raise PromQLSyntaxError(f"expression nested deeper than {MAX_DEPTH} levels", self.tok.pos)
        self._depth += 1
        try:
            return self._binary_chain(min_prec)
        finally:
            self._depth -= 1

    def _binary_chain(self, min_prec: int) -> Node:
        lhs = self._unary()
        while True:
            op = self._binary_op()
            if op is None:
                return lhs
            prec, right_assoc = _BINARY_OPS[op]
            if prec < min_prec:
                return lhs
            self._advance()
            return_bool = False
            if op in _COMPARISONS and self._is_ident("bool"):
                self._advance()
                return_bool = True
            matching = self._vector_matching()
            rhs = self._expr(prec if right_assoc else prec + 1)
            lhs = Binary(op, lhs, rhs, return_bool, matching)

    def _vector_matching(self) -> Matching | None:
        if not self._is_ident("on", "ignoring"):
            return None
        on = self._advance().text == "on"
        matching = Matching(on=on, labels=self._label_list())
        if self._is_ident("group_left", "group_right"):
            matching.group_side = self._advance().text.split("_", 1)[1]
            if self.tok.kind is Tok.LPAREN:
                matching.include = self._label_list()
        return matching

    def _label_list(self) -> list[str]:
        self._expect(Tok.LPAREN)
        labels: list[str] = []
        while self.tok.kind is not Tok.RPAREN:
            tok = self.tok
            if tok.kind not in (Tok.IDENT, Tok.STRING):
                raise PromQLSyntaxError(f"expected label name, found {tok.text!r}", tok.pos)
            labels.append(self._advance().text)
            if self.tok.kind is Tok.COMMA:
                self._advance()
            elif self.tok.kind is not Tok.RPAREN:
                raise PromQLSyntaxError("expected ',' or ')' in label list", self.tok.pos)
        self._advance()
        return labels

    def _unary(self) -> Node:
        if self.tok.kind is Tok.OP and self.tok.text in ("-", "+"):
            op = self._advance().text
            return Unary(op, self._expr(_UNARY_PRECEDENCE))
        return self._postfix(self._primary())

    def _postfix(self, node: Node) -> Node:
        while True:
            if self.tok.kind is Tok.LBRACKET:
                node = self._range_or_subquery(node)
            elif self._is_ident("offset"):
                self._advance()
                sign = ""
                if self.tok.kind is Tok.OP and self.tok.text == "-":
                    sign = self._advance().text
                offset = sign + self._expect(Tok.DURATION).text
                self._set_modifier(node, "offset", offset)
            elif self.tok.kind is Tok.AT:
                self._advance()
                self._set_modifier(node, "at", self._at_value())
            else:
                return node

    def _at_value(self) -> str:
        if self._is_ident("start", "end"):
            name = self._advance().text
            self._expect(Tok.LPAREN)
            self._expect(Tok.RPAREN)
            return f"{name}()"
        sign = ""
        if self.tok.kind is Tok.OP and self.tok.text in ("-", "+"):
            sign = self._advance().text
        return sign + self._expect(Tok.NUMBER).text

    def _set_modifier(self, node: Node, attr: str, value: str) -> None:
        if not isinstance(node, (VectorSelector, Subquery)):
            raise PromQLSyntaxError(f"{attr} modifier must follow a selector or subquery", self.tok.pos)
        if getattr(node, attr) is not None:
            raise PromQLSyntaxError(f"{attr} may not be set multiple times", self.tok.pos)
        setattr(node, attr, value)

    def _range_or_subquery(self, node: Node) -> Node:
        start = self._expect(Tok.LBRACKET)
        duration = self._expect(Tok.DURATION).text
        if self.tok.kind is Tok.COLON:
            self._advance()
            step = None
            if self.tok.kind is Tok.DURATION:
                step = self._advance().text
            self._expect(Tok.RBRACKET)
            return Subquery(node, duration, step)
        self._expect(Tok.RBRACKET)
        if (
            not isinstance(node, VectorSelector)
            or node.range is not None
            or node.offset is not None
            or node.at is not None
        ):
            raise PromQLSyntaxError("ranges only allowed for vector selectors", start.pos)
        node.range = duration
        return node

    def _primary(self) -> Node:
        tok = self.tok
        if tok.kind is Tok.NUMBER:
            return Literal(self._advance().text)
        if tok.kind is Tok.STRING:
            return Literal(self._advance().text)
        if tok.kind is Tok.LPAREN:
            self._advance()
            inner = self._expr(0)
            self._expect(Tok.RPAREN)
            return Paren(inner)
        if tok.kind is Tok.LBRACE:
            selector = VectorSelector("", self._matchers())
            if not selector.matchers:
                raise PromQLSyntaxError("vector selector must contain at least one matcher", tok.pos)
            return selector
        if tok.kind is Tok.IDENT:
            return self._ident_expr()
        raise PromQLSyntaxError(f"unexpected {tok.text or 'end of input'!r}", tok.pos)

    def _ident_expr(self) -> Node:
        tok = self._advance()
        name = tok.text
        nxt = self.tok
        if name in AGGREGATORS and (nxt.kind is Tok.LPAREN or (nxt.kind is Tok.IDENT and nxt.text in ("by", "without"))):
            return self._aggregate(name)
        if nxt.kind is Tok.LPAREN:
            return Call(name, self._call_args())
        if name.lower() in ("inf", "nan"):
            return Literal(name)
        matchers = self._matchers() if nxt.kind is Tok.LBRACE else []
        return VectorSelector(name, matchers)

    def _call_args(self) -> list[Node]:
        self._expect(Tok.LPAREN)
        args: list[Node] = []
        while self.tok.kind is not Tok.RPAREN:
            args.append(self._expr(0))
            if self.tok.kind is Tok.COMMA:
                self._advance()
            elif self.tok.kind is not Tok.RPAREN:
                raise PromQLSyntaxError("expected ',' or ')' in argument list", self.tok.pos)
        self._advance()
        return args

    def _aggregate(self, op: str) -> Aggregate:
        grouping: list[str] = []
        without = False
        grouped = False
        if self._is_ident("by", "without"):
            without = self._advance().text == "without"
            grouping = self._label_list()
            grouped = True
        args = self._call_args()
        if not grouped and self._is_ident("by", "without"):
            without = self._advance().text == "without"
            grouping = self._label_list()
        expected = 2 if op in PARAM_AGGREGATORS else 1
        if len(args) != expected:
            raise PromQLSyntaxError(f"{op} expects {expected} argument(s), got {len(args)}", self.tok.pos)
        param = args[0] if expected == 2 else None
        return Aggregate(op, args[-1], param, grouping, without)

    def _matchers(self) -> list[Matcher]:
        self._expect(Tok.LBRACE)
        matchers: list[Matcher] = []
        while self.tok.kind is not Tok.RBRACE:
            label = self.tok
            if label.kind not in (Tok.IDENT, Tok.STRING):
                raise PromQLSyntaxError(f"expected label matcher, found {label.text!r}", label.pos)
            self._advance()
            op = self.tok
            if op.kind is not Tok.OP or op.text not in _MATCH_OPS:
                raise PromQLSyntaxError(f"expected label matching operator, found {op.text!r}", op.pos)
            self._advance()
            value = self._expect(Tok.STRING).text
            matchers.append(Matcher(label.text, op.text, value))
            if self.tok.kind is Tok.COMMA:
                self._advance()
            elif self.tok.kind is not Tok.RBRACE:
                raise PromQLSyntaxError("expected ',' or '}' in label matchers", self.tok.pos)
        self._advance()
        return matchers


def parse(text: str) -> Node:
    """Parse *text*. Raises PromQLSyntaxError on invalid input."""
    return _Parser(tokenize(text)).parse()


def format_query(text: str) -> str:
    """Pretty-print *text*, or return it unchanged when it does not parse."""
    try:
        return parse(text).pretty(0)
    except PromQLSyntaxError as exc:
        logger.debug("format_query: leaving query unformatted: %s", exc)
    except RecursionError:
        # Very long operator chains nest the tree past what pretty() can walk.
        logger.debug("format_query: query too deeply nested to format")
    return text
